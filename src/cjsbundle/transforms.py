"""Content transforms applied to module sources and the loader prelude."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

import httpx
from jsmin import jsmin

from .errors import FetchError, TransformError

LOGGER = logging.getLogger(__name__)

CLOSURE_URL = "https://closure-compiler.appspot.com/compile"


def _decode(content: bytes, step: str) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TransformError(f"{step} input is not valid UTF-8: {exc}") from exc


@runtime_checkable
class Transform(Protocol):
    """Pure content-to-content rewrite."""

    def transform(self, content: bytes) -> bytes:
        """Return the rewritten content."""


class TransformChain:
    """Apply transforms left to right."""

    def __init__(self, *transforms: Transform) -> None:
        self.transforms = list(transforms)

    def transform(self, content: bytes) -> bytes:
        for step in self.transforms:
            content = step.transform(content)
        return content


class JSMin:
    """Strip comments and insignificant whitespace with ``jsmin``."""

    def transform(self, content: bytes) -> bytes:
        return jsmin(_decode(content, "jsmin")).encode("utf-8")


class CompilationLevel(str, Enum):
    """Optimisation levels offered by the Closure compiler service."""

    WHITESPACE = "WHITESPACE_ONLY"
    SIMPLE = "SIMPLE_OPTIMIZATIONS"
    ADVANCED = "ADVANCED_OPTIMIZATIONS"


class Closure:
    """Minify through the remote Closure compiler REST API."""

    def __init__(
        self,
        level: CompilationLevel | str = CompilationLevel.SIMPLE,
        *,
        url: str = CLOSURE_URL,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self.level = CompilationLevel(level)
        self.url = url
        self._client = client
        self._timeout = timeout

    def transform(self, content: bytes) -> bytes:
        form = {
            "js_code": _decode(content, "closure"),
            "compilation_level": self.level.value,
            "output_format": "json",
            "output_info": "compiled_code",
        }
        LOGGER.debug("Compiling %d bytes with %s (%s)", len(content), self.url, self.level.value)
        try:
            if self._client is not None:
                response = self._client.post(self.url, data=form)
            else:
                response = httpx.post(self.url, data=form, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"closure compiler request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransformError("closure compiler returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise TransformError("closure compiler response is not a JSON object")
        errors = payload.get("serverErrors") or payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            detail = first.get("error") if isinstance(first, dict) else None
            raise TransformError(f"closure compiler error: {detail or first}")
        compiled = payload.get("compiledCode")
        if not isinstance(compiled, str):
            raise TransformError("closure compiler response has no compiledCode")
        return compiled.encode("utf-8")


__all__ = [
    "CLOSURE_URL",
    "Closure",
    "CompilationLevel",
    "JSMin",
    "Transform",
    "TransformChain",
]
