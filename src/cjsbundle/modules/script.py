"""In-process module variants: inline script, JSON value and wrapped modules."""

from __future__ import annotations

import json
import threading
from typing import Any

from ..errors import EncodeError
from .base import Module, ParsedRequireMixin

JSON_PREFIX = "exports.module="


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class ScriptModule(ParsedRequireMixin):
    """Module backed by inline script content."""

    def __init__(self, name: str, content: bytes | str) -> None:
        self.name = name
        self._content = _as_bytes(content)
        self._require: list[str] | None = None
        self._lock = threading.RLock()

    def content(self) -> bytes:
        return self._content

    def __repr__(self) -> str:
        return f"ScriptModule({self.name!r}, {len(self._content)} bytes)"


class JSONModule:
    """Module exposing a JSON-serialisable value as ``exports.module``.

    Useful for injecting configuration into the page. Encoding happens on the
    first ``content()`` call; values JSON cannot represent (NaN, infinities,
    arbitrary objects) raise :class:`EncodeError`.
    """

    def __init__(self, name: str, value: Any) -> None:
        self.name = name
        self.value = value
        self._content: bytes | None = None
        self._lock = threading.Lock()

    def content(self) -> bytes:
        with self._lock:
            if self._content is None:
                try:
                    encoded = json.dumps(self.value, separators=(",", ":"), allow_nan=False)
                except (TypeError, ValueError) as exc:
                    raise EncodeError(f"module {self.name} is not JSON encodable: {exc}") from exc
                self._content = f"{JSON_PREFIX}{encoded}\n".encode("utf-8")
            return self._content

    def require(self) -> list[str]:
        return []

    def __repr__(self) -> str:
        return f"JSONModule({self.name!r})"


class WrapModule:
    """Splice prelude/postlude bytes around another module's content."""

    def __init__(
        self,
        inner: Module,
        prelude: bytes | str | None = None,
        postlude: bytes | str | None = None,
    ) -> None:
        self.inner = inner
        self.prelude = _as_bytes(prelude or b"")
        self.postlude = _as_bytes(postlude or b"")

    @property
    def name(self) -> str:
        return self.inner.name

    def content(self) -> bytes:
        return self.prelude + self.inner.content() + self.postlude

    def require(self) -> list[str]:
        return self.inner.require()

    def __repr__(self) -> str:
        return f"WrapModule({self.inner!r})"


__all__ = ["JSONModule", "JSON_PREFIX", "ScriptModule", "WrapModule"]
