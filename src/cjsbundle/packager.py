"""Deterministic serialisation of a resolved module set into one bundle."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterable

from .errors import EncodeError
from .providers import Provider
from .transforms import Transform

LOGGER = logging.getLogger(__name__)


def define_statement(name: str, content: bytes) -> bytes:
    """Render ``define("<name>","<content>");`` followed by a newline."""

    try:
        source = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodeError(f"module {name} is not valid UTF-8: {exc}") from exc
    encoded_name = json.dumps(name)
    encoded_content = json.dumps(source)
    return f"define({encoded_name},{encoded_content});\n".encode("ascii")


def package(
    names: Iterable[str],
    provider: Provider,
    transform: Transform | None = None,
    prelude: bytes | None = None,
) -> bytes:
    """Serialise ``names`` into bundle bytes.

    Modules are emitted in lexicographic name order regardless of how the
    names were collected, which keeps the output byte-identical for the same
    provider state. ``prelude`` is written verbatim before any ``define``.
    """

    buffer = io.BytesIO()
    if prelude:
        buffer.write(prelude)
    ordered = sorted(set(names))
    for name in ordered:
        content = provider.module(name).content()
        if transform is not None:
            content = transform.transform(content)
        buffer.write(define_statement(name, content.strip()))
    data = buffer.getvalue()
    LOGGER.debug("Packaged %d module(s) into %d bytes", len(ordered), len(data))
    return data


__all__ = ["define_statement", "package"]
