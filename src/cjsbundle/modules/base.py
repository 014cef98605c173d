"""Module protocol and dependency extraction shared by all module variants."""

from __future__ import annotations

import re
import threading
from typing import Protocol, runtime_checkable

# Only literal call sites are visible; computed requires are ignored.
REQUIRE_PATTERN = re.compile(rb"""require\((['"])([^'"]+?)\1\)""")


@runtime_checkable
class Module(Protocol):
    """A named unit of script content."""

    name: str

    def content(self) -> bytes:
        """Return the raw script bytes."""

    def require(self) -> list[str]:
        """Return required module names in first-occurrence order."""


def parse_require(content: bytes) -> list[str]:
    """Extract ``require('name')`` / ``require("name")`` literals from ``content``."""

    return [match.group(2).decode("utf-8") for match in REQUIRE_PATTERN.finditer(content)]


class ParsedRequireMixin:
    """Memoise ``require()`` from the module's own ``content()``."""

    _lock: threading.RLock
    _require: list[str] | None

    def content(self) -> bytes:  # pragma: no cover - provided by subclasses
        raise NotImplementedError

    def require(self) -> list[str]:
        with self._lock:
            if self._require is None:
                self._require = parse_require(self.content())
            return list(self._require)


__all__ = ["Module", "ParsedRequireMixin", "REQUIRE_PATTERN", "parse_require"]
