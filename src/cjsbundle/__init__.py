"""CommonJS module bundler with a content-addressed bundle server."""

from importlib import metadata

from .app import App
from .errors import (
    BundleError,
    EncodeError,
    FetchError,
    InvalidModuleError,
    MalformedRequestError,
    NotFoundError,
    StoreError,
    TransformError,
)
from .modules import FileModule, JSONModule, Module, ScriptModule, URLModule, WrapModule
from .packager import package
from .providers import ChainProvider, CustomProvider, DirProvider, Provider
from .resolver import resolve
from .runtime import Call, Loader, LoaderError
from .store import DiskStore, MemoryStore, content_key


def _discover_version() -> str:
    """Return the installed package version, falling back to dev marker."""
    try:
        return metadata.version("cjsbundle")
    except metadata.PackageNotFoundError:  # pragma: no cover - occurs in editable installs
        return "0.0.0"


__version__ = _discover_version()

__all__ = [
    "App",
    "BundleError",
    "Call",
    "ChainProvider",
    "CustomProvider",
    "DirProvider",
    "DiskStore",
    "EncodeError",
    "FetchError",
    "FileModule",
    "InvalidModuleError",
    "JSONModule",
    "Loader",
    "LoaderError",
    "MalformedRequestError",
    "MemoryStore",
    "Module",
    "NotFoundError",
    "Provider",
    "ScriptModule",
    "StoreError",
    "TransformError",
    "URLModule",
    "WrapModule",
    "__version__",
    "content_key",
    "package",
    "resolve",
]
