from __future__ import annotations

from pathlib import Path

from conftest import EXPECTED_BUNDLE, EXPECTED_URL
from typer.testing import CliRunner
from werkzeug.test import Client

from cjsbundle.cli import app

runner = CliRunner()


def _write_config(tmp_path: Path, module_dir: Path, *extra: str) -> Path:
    config = tmp_path / "config.yaml"
    config.write_text(
        "\n".join(
            [
                f"root_dir: {tmp_path / 'state'}",
                "mount_path: r",
                "module_paths:",
                f"  - {module_dir}",
                "modules:",
                "  json:",
                "    settings:",
                "      answer: 42",
                *extra,
                "",
            ]
        ),
        encoding="utf-8",
    )
    return config


def test_url_prints_minted_url(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "url", "a/foo", "b/baz"])

    assert result.exit_code == 0
    assert result.stdout.strip() == EXPECTED_URL


def test_bundle_writes_stdout(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "bundle", "a/foo", "b/baz"])

    assert result.exit_code == 0
    assert result.stdout == EXPECTED_BUNDLE.decode("utf-8")


def test_bundle_with_prelude_to_file(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)
    output = tmp_path / "out" / "bundle.js"

    result = runner.invoke(
        app, ["-c", str(config_path), "bundle", "settings", "--prelude", "-o", str(output)]
    )

    assert result.exit_code == 0
    data = output.read_bytes()
    assert data.index(b"exports.define") < data.index(b'define("settings"')
    assert data.endswith(b'define("settings","exports.module={\\"answer\\":42}");\n')


def test_deps_lists_closure(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "deps", "a/foo"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["a/foo", "b/baz", "bar"]


def test_missing_module_exits_with_error(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "url", "ghost"])

    assert result.exit_code == 1
    assert "ghost" in result.output


def test_prelude_is_minified_when_configured(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir, "transform: jsmin")

    result = runner.invoke(app, ["-c", str(config_path), "prelude"])

    assert result.exit_code == 0
    assert "exports.define=define" in result.stdout


def test_status_reports_configuration(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "status"])

    assert result.exit_code == 0
    assert str(module_dir) in result.stdout
    assert "JSON module: settings" in result.stdout


def test_invalid_config_exits_2(tmp_path, module_dir):
    config_path = _write_config(tmp_path, module_dir, "store: redis")

    result = runner.invoke(app, ["-c", str(config_path), "deps", "a/foo"])

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_serve_refuses_memory_store(tmp_path, module_dir, monkeypatch):
    started: list = []
    monkeypatch.setattr("cjsbundle.cli.run_simple", lambda *args, **kwargs: started.append(args))
    config_path = _write_config(tmp_path, module_dir)

    result = runner.invoke(app, ["-c", str(config_path), "serve"])

    assert result.exit_code == 2
    assert "store: disk" in result.output
    assert started == []


def test_serve_runs_disk_backed_app(tmp_path, module_dir, monkeypatch):
    started: list = []
    logging_calls: list = []
    monkeypatch.setattr(
        "cjsbundle.cli.run_simple",
        lambda host, port, application, **kwargs: started.append((host, port, application)),
    )
    monkeypatch.setattr(
        "cjsbundle.cli.configure_logging",
        lambda config, root_dir, **kwargs: logging_calls.append(kwargs),
    )
    config_path = _write_config(tmp_path, module_dir, "store: disk")
    minted = runner.invoke(app, ["-c", str(config_path), "url", "a/foo", "b/baz"])

    result = runner.invoke(app, ["-c", str(config_path), "serve", "--port", "9123"])

    assert result.exit_code == 0
    host, port, application = started[0]
    assert (host, port) == ("127.0.0.1", 9123)
    assert logging_calls == [{"serving": True}]
    response = Client(application).get(minted.stdout.strip())
    assert response.status_code == 200
    assert response.data == EXPECTED_BUNDLE
