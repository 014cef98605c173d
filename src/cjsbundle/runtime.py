"""Python model of the browser loader runtime.

:class:`Loader` follows the same define/require/execute contract as the
JavaScript prelude, with payloads given as Python callables taking
``(require, exports, module)``. Deferred flushes go through a ``call_soon``
primitive, by default the running asyncio loop's, so the queue-then-flush
behaviour can be exercised server-side.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

from .errors import EncodeError

LOGGER = logging.getLogger(__name__)

Require = Callable[[str], Any]
Payload = Callable[[Require, Any, Any], None]
CallSoon = Callable[[Callable[[], None]], Any]


class LoaderError(RuntimeError):
    """Raised for duplicate definitions and unknown modules."""


@dataclass(frozen=True)
class Call:
    """A deferred ``require(module)[fn](*args)`` invocation."""

    module: str
    fn: str
    args: Sequence[Any] = ()

    def to_json(self) -> str:
        payload = {"module": self.module, "fn": self.fn, "args": list(self.args)}
        try:
            return json.dumps(payload, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise EncodeError(
                f"arguments for {self.module}.{self.fn} are not JSON encodable"
            ) from exc

    def statement(self) -> str:
        """Render the inline ``execute(...)`` statement for this call."""

        return f"execute({self.to_json()});"


@dataclass
class ModuleRecord:
    """An instantiated module; payloads may replace ``exports`` wholesale."""

    name: str
    exports: Any = field(default_factory=SimpleNamespace)


class Loader:
    """Lazily instantiate defined modules and run queued calls against them."""

    def __init__(self, call_soon: CallSoon | None = None) -> None:
        self._payloads: dict[str, Payload] = {}
        self._modules: dict[str, ModuleRecord] = {}
        self._execute: list[Call] = []
        self._schedule: Any | None = None
        self._call_soon = call_soon

    def define(self, name: str, payload: Payload) -> None:
        if name in self._payloads or name in self._modules:
            raise LoaderError(f"module {name} already defined")
        self._payloads[name] = payload
        self._schedule_flush()

    def require(self, name: str) -> Any:
        record = self._modules.get(name)
        if record is not None:
            return record.exports

        try:
            payload = self._payloads.pop(name)
        except KeyError:
            raise LoaderError(f"module {name} not found") from None
        record = ModuleRecord(name=name)
        self._modules[name] = record
        payload(self.require, record.exports, record)
        return record.exports

    def execute(self, call: Call) -> None:
        self._execute.append(call)
        self._schedule_flush()

    def is_available(self, name: str) -> bool:
        return name in self._modules or name in self._payloads

    @property
    def pending(self) -> list[Call]:
        """Calls still waiting for their module."""

        return list(self._execute)

    @property
    def flush_scheduled(self) -> bool:
        return self._schedule is not None

    def _schedule_flush(self) -> None:
        if self._schedule is not None:
            return
        call_soon = self._call_soon or asyncio.get_running_loop().call_soon
        self._schedule = call_soon(self._fire)

    def _fire(self) -> None:
        self._schedule = None
        self._run()

    def _run(self) -> None:
        current, self._execute = self._execute, []
        for call in current:
            if self.is_available(call.module):
                exports = self.require(call.module)
                if isinstance(exports, Mapping):
                    exports[call.fn](*call.args)
                else:
                    getattr(exports, call.fn)(*call.args)
            else:
                LOGGER.debug("Module '%s' not defined yet; deferring %s", call.module, call.fn)
                self.execute(call)


__all__ = ["Call", "Loader", "LoaderError", "ModuleRecord"]
