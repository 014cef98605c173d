"""cjsbundle command-line interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from werkzeug.serving import run_simple

from . import __version__
from .app import App
from .config import Config, ConfigError, build_app, load_config, resolve_config_path
from .errors import BundleError
from .logging import configure_logging
from .resolver import resolve

app = typer.Typer(help="CommonJS bundler utilities.")
LOGGER = logging.getLogger(__name__)

ModulesArgument = Annotated[
    list[str],
    typer.Argument(..., help="Root module names, in call order."),
]


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _cjsbundle(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to config (env CJSBUNDLE_CONFIG or ~/.config/cjsbundle/config.yaml).",
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Interface to bind (defaults to server.host)."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", help="Port to listen on (defaults to server.port)."),
    ] = None,
) -> None:
    """Serve minted bundles over HTTP."""

    config, bundler = _load_environment(_state(ctx), serving=True)
    bind_host = host or config.server.host
    bind_port = port or config.server.port
    LOGGER.info(
        "cjsbundle %s serving %s on %s:%s", __version__, bundler.mount_path, bind_host, bind_port
    )
    run_simple(bind_host, bind_port, bundler, threaded=True)


@app.command()
def url(ctx: typer.Context, modules: ModulesArgument) -> None:
    """Mint and print the bundle URL for MODULES."""

    _config, bundler = _load_environment(_state(ctx))
    try:
        minted = bundler.modules_url(modules)
    except BundleError as exc:
        _bundle_failure(exc)
    typer.echo(minted)


@app.command()
def bundle(
    ctx: typer.Context,
    modules: ModulesArgument,
    prelude: Annotated[
        bool,
        typer.Option("--prelude", help="Emit the loader runtime before the modules."),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write the bundle to a file instead of stdout."),
    ] = None,
) -> None:
    """Write the bundle for MODULES and their dependencies."""

    _config, bundler = _load_environment(_state(ctx))
    try:
        data = bundler.bundle(modules, include_prelude=prelude)
    except BundleError as exc:
        _bundle_failure(exc)

    if output is None:
        typer.echo(data.decode("utf-8"), nl=False)
        return
    output = output.expanduser()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    typer.echo(f"Wrote {len(data)} bytes to {output}")


@app.command()
def deps(ctx: typer.Context, modules: ModulesArgument) -> None:
    """Print the dependency closure of MODULES, one name per line."""

    _config, bundler = _load_environment(_state(ctx))
    try:
        names = resolve(modules, bundler)
    except BundleError as exc:
        _bundle_failure(exc)
    for name in sorted(names):
        typer.echo(name)


@app.command("prelude")
def show_prelude(ctx: typer.Context) -> None:
    """Print the loader runtime after the configured transform."""

    _config, bundler = _load_environment(_state(ctx))
    try:
        data = bundler.script_prelude()
    except BundleError as exc:
        _bundle_failure(exc)
    typer.echo(data.decode("utf-8"))


@app.command()
def status(ctx: typer.Context) -> None:
    """Display the effective configuration."""

    state = _state(ctx)
    config, _bundler = _load_environment(state)
    typer.echo("→ cjsbundle Status")
    typer.echo(f"Version: {__version__}")
    typer.echo(f"Config path: {resolve_config_path(state.config_path)}")
    typer.echo(f"Root dir: {config.root_dir}")
    typer.echo(f"Mount path: {config.mount_path}")
    typer.echo(f"Transform: {config.transform}")
    typer.echo(f"Store: {config.store}")
    typer.echo("")
    typer.echo("Module paths:")
    for path in config.module_paths:
        marker = "" if path.is_dir() else " (missing)"
        typer.echo(f"  - {path}{marker}")
    for name in sorted(config.json_modules):
        typer.echo(f"JSON module: {name}")
    for name, address in sorted(config.url_modules.items()):
        typer.echo(f"URL module: {name} <- {address}")


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        state = CLIState(config_path=None)
        ctx.obj = state
    return state


def _load_environment(state: CLIState, *, serving: bool = False) -> tuple[Config, App]:
    try:
        config = load_config(state.config_path)
        if serving:
            _check_servable(config)
            configure_logging(config.logging, config.root_dir, serving=True)
    except ConfigError as exc:
        _config_failure(exc)
    return config, build_app(config)


def _check_servable(config: Config) -> None:
    if config.store == "memory":
        raise ConfigError(
            "serve needs 'store: disk'; a memory store starts empty and never sees"
            " bundles minted by other cjsbundle commands."
        )


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _bundle_failure(exc: BundleError) -> NoReturn:
    typer.secho(f"Bundling failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1) from exc


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
