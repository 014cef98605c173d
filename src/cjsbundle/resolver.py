"""Transitive dependency closure over a provider."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .providers import Provider

LOGGER = logging.getLogger(__name__)


def resolve(roots: Iterable[str], provider: Provider) -> set[str]:
    """Return ``roots`` plus every module name they transitively require.

    Walks depth-first with an explicit stack. Names already visited are never
    looked up again, so require cycles terminate. Provider errors, including
    :class:`~cjsbundle.errors.NotFoundError`, propagate immediately.
    """

    visited: set[str] = set()
    pending = list(roots)
    pending.reverse()
    while pending:
        name = pending.pop()
        if name in visited:
            continue
        visited.add(name)
        required = provider.module(name).require()
        pending.extend(reversed(required))
    LOGGER.debug("Resolved %d module(s): %s", len(visited), sorted(visited))
    return visited


__all__ = ["resolve"]
