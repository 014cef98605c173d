"""Module variants understood by the bundler."""

from __future__ import annotations

from .base import Module, parse_require
from .script import JSONModule, ScriptModule, WrapModule
from .sources import FileModule, URLModule, modules_from_dir

__all__ = [
    "FileModule",
    "JSONModule",
    "Module",
    "ScriptModule",
    "URLModule",
    "WrapModule",
    "modules_from_dir",
    "parse_require",
]
