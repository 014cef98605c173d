"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .app import App
from .modules import JSONModule, Module, URLModule
from .providers import DirProvider
from .store import ByteStore, DiskStore, MemoryStore
from .transforms import Closure, CompilationLevel, JSMin, Transform

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/cjsbundle/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/lib/cjsbundle")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_MOUNT_PATH = "/r/"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
TRANSFORMS = ("none", "jsmin", "closure")
STORES = ("memory", "disk")
BUNDLES_DIRNAME = "bundles"


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class ServerConfig:
    """Listen address for ``cjsbundle serve``."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path
    mount_path: str
    module_paths: list[Path]
    json_modules: dict[str, Any] = field(default_factory=dict)
    url_modules: dict[str, str] = field(default_factory=dict)
    transform: str = "none"
    closure_level: CompilationLevel = CompilationLevel.SIMPLE
    store: str = "memory"
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML."""

    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return parse_config(raw, base_dir=config_path.parent)


def resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get("CJSBUNDLE_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def parse_config(raw: dict[str, Any], *, base_dir: Path | None = None) -> Config:
    """Build a :class:`Config` from an already-loaded mapping.

    Relative ``module_paths`` are anchored at ``base_dir`` (the config file's
    directory) when given.
    """

    root_dir = Path(raw.get("rootdir") or raw.get("root_dir") or DEFAULT_ROOT_DIR).expanduser()
    mount_path = _parse_mount_path(raw.get("mount_path"))
    module_paths = _parse_module_paths(raw.get("module_paths"), base_dir)
    json_modules, url_modules = _parse_modules(raw.get("modules"))
    transform = _parse_choice(raw.get("transform"), "transform", TRANSFORMS, "none")
    closure_level = _parse_closure(raw.get("closure"))
    store = _parse_choice(raw.get("store"), "store", STORES, "memory")
    server = _parse_server(raw.get("server"))
    logging_config = _parse_logging(raw.get("logging"))
    config = Config(
        root_dir=root_dir,
        mount_path=mount_path,
        module_paths=module_paths,
        json_modules=json_modules,
        url_modules=url_modules,
        transform=transform,
        closure_level=closure_level,
        store=store,
        server=server,
        logging=logging_config,
    )
    _warn_if_no_sources(config)
    return config


def build_app(config: Config) -> App:
    """Assemble an :class:`App` from configuration."""

    modules: list[Module] = [
        JSONModule(name, value) for name, value in config.json_modules.items()
    ]
    modules.extend(URLModule(name, url) for name, url in config.url_modules.items())
    providers = [DirProvider(path) for path in config.module_paths]

    transform: Transform | None = None
    if config.transform == "jsmin":
        transform = JSMin()
    elif config.transform == "closure":
        transform = Closure(config.closure_level)

    content_store: ByteStore
    if config.store == "disk":
        content_store = DiskStore(config.root_dir / BUNDLES_DIRNAME)
    else:
        content_store = MemoryStore()

    return App(
        mount_path=config.mount_path,
        modules=modules,
        providers=providers,
        transform=transform,
        content_store=content_store,
    )


def _parse_mount_path(value: Any) -> str:
    if value is None:
        return DEFAULT_MOUNT_PATH
    if not isinstance(value, str) or not value.strip("/ "):
        raise ConfigError("mount_path must be a non-empty string.")
    return value.strip()


def _parse_module_paths(value: Any, base_dir: Path | None) -> list[Path]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("module_paths must be a list.")

    paths: list[Path] = []
    for idx, entry in enumerate(value, start=1):
        if isinstance(entry, Path):
            path = entry
        elif isinstance(entry, str):
            path = Path(entry)
        else:
            raise ConfigError(f"module_paths[{idx}] must be a string path.")
        path = path.expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        paths.append(path)
    return paths


def _parse_modules(value: Any) -> tuple[dict[str, Any], dict[str, str]]:
    if value is None:
        return {}, {}
    if not isinstance(value, dict):
        raise ConfigError("modules must be a mapping.")
    unknown = sorted(set(value) - {"json", "url"})
    if unknown:
        raise ConfigError(f"Unknown module kinds: {', '.join(map(str, unknown))}")

    json_modules = value.get("json") or {}
    url_modules = value.get("url") or {}
    if not isinstance(json_modules, dict):
        raise ConfigError("modules.json must be a mapping of name to value.")
    if not isinstance(url_modules, dict):
        raise ConfigError("modules.url must be a mapping of name to URL.")

    for name in [*json_modules, *url_modules]:
        if not isinstance(name, str) or not name:
            raise ConfigError("Module names must be non-empty strings.")
    duplicates = sorted(set(json_modules) & set(url_modules))
    if duplicates:
        raise ConfigError(f"Module defined twice: {', '.join(duplicates)}")
    for name, url in url_modules.items():
        if not isinstance(url, str) or not url.strip():
            raise ConfigError(f"modules.url.{name} must be a URL string.")
    return dict(json_modules), {name: url.strip() for name, url in url_modules.items()}


def _parse_choice(value: Any, field_name: str, choices: tuple[str, ...], default: str) -> str:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized not in choices:
        raise ConfigError(f"{field_name} must be one of: {', '.join(choices)}.")
    return normalized


def _parse_closure(value: Any) -> CompilationLevel:
    if value is None:
        return CompilationLevel.SIMPLE
    if not isinstance(value, dict):
        raise ConfigError("closure must be a mapping.")
    level = str(value.get("level", CompilationLevel.SIMPLE.value)).strip().upper()
    try:
        return CompilationLevel(level)
    except ValueError as exc:
        raise ConfigError(f"Unknown closure level: {level}") from exc


def _parse_server(value: Any) -> ServerConfig:
    if value is None:
        return ServerConfig()
    if not isinstance(value, dict):
        raise ConfigError("server must be a mapping.")
    host = str(value.get("host", DEFAULT_HOST))
    port = value.get("port", DEFAULT_PORT)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigError("server.port must be an integer between 1 and 65535.")
    return ServerConfig(host=host, port=port)


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


def _warn_if_no_sources(config: Config) -> None:
    if config.module_paths or config.json_modules or config.url_modules:
        return
    LOGGER.warning(
        "No module sources configured. Add 'module_paths' or a 'modules' block."
    )


__all__ = [
    "Config",
    "ConfigError",
    "LoggingConfig",
    "ServerConfig",
    "build_app",
    "load_config",
    "parse_config",
]
