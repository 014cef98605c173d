from __future__ import annotations

import asyncio

import pytest

from cjsbundle.errors import EncodeError
from cjsbundle.runtime import Call, Loader, LoaderError


class FakeTimer:
    """Collects zero-delay callbacks until the test fires them."""

    def __init__(self) -> None:
        self.callbacks: list = []

    def __call__(self, callback):
        self.callbacks.append(callback)
        return len(self.callbacks)

    def fire(self) -> int:
        pending, self.callbacks = self.callbacks, []
        for callback in pending:
            callback()
        return len(pending)


def _recorder(calls: list):
    def payload(require, exports, module):
        exports.f = lambda *args: calls.append(args)

    return payload


def test_execute_before_define_runs_after_flush() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    calls: list = []

    loader.execute(Call("m", "f", [1]))
    timer.fire()
    assert calls == []
    assert [call.module for call in loader.pending] == ["m"]

    loader.define("m", _recorder(calls))
    timer.fire()

    assert calls == [(1,)]
    assert loader.pending == []


def test_define_and_execute_never_run_synchronously() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    calls: list = []

    loader.define("m", _recorder(calls))
    loader.execute(Call("m", "f", ["a", 2]))

    assert calls == []
    assert len(timer.callbacks) == 1
    timer.fire()
    assert calls == [("a", 2)]


def test_scheduling_is_idempotent() -> None:
    timer = FakeTimer()
    loader = Loader(timer)

    loader.define("a", lambda require, exports, module: None)
    loader.define("b", lambda require, exports, module: None)
    loader.execute(Call("a", "missing"))
    loader.execute(Call("c", "f"))

    assert len(timer.callbacks) == 1
    assert loader.flush_scheduled


def test_requeued_calls_wait_for_next_flush() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    loader.execute(Call("late", "f"))
    loader.execute(Call("later", "f"))

    assert timer.fire() == 1

    assert [call.module for call in loader.pending] == ["late", "later"]
    assert len(timer.callbacks) == 1


def test_calls_run_in_queue_order() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    seen: list = []

    def payload(require, exports, module):
        exports.f = lambda value: seen.append(value)

    for value in range(3):
        loader.execute(Call("m", "f", [value]))
    loader.define("m", payload)
    timer.fire()

    assert seen == [0, 1, 2]


def test_define_twice_raises() -> None:
    loader = Loader(FakeTimer())
    loader.define("m", lambda require, exports, module: None)

    with pytest.raises(LoaderError, match="already defined"):
        loader.define("m", lambda require, exports, module: None)


def test_define_after_instantiation_raises() -> None:
    loader = Loader(FakeTimer())
    loader.define("m", lambda require, exports, module: None)
    loader.require("m")

    with pytest.raises(LoaderError):
        loader.define("m", lambda require, exports, module: None)


def test_require_missing_raises() -> None:
    with pytest.raises(LoaderError, match="missing"):
        Loader(FakeTimer()).require("missing")


def test_require_instantiates_once_and_resolves_dependencies() -> None:
    loader = Loader(FakeTimer())
    runs: list[str] = []

    def dep(require, exports, module):
        runs.append("dep")
        exports.value = 41

    def main(require, exports, module):
        runs.append("main")
        exports.answer = require("dep").value + 1

    loader.define("dep", dep)
    loader.define("main", main)

    assert loader.require("main").answer == 42
    assert loader.require("main") is loader.require("main")
    assert runs == ["main", "dep"]


def test_module_exports_can_be_replaced() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    seen: list = []

    def payload(require, exports, module):
        module.exports = {"log": seen.append}

    loader.define("jquery", payload)
    loader.execute(Call("jquery", "log", ["hi"]))
    timer.fire()

    assert loader.require("jquery") == {"log": seen.append}
    assert seen == ["hi"]


def test_call_statement_is_compact_json() -> None:
    call = Call("mname", "fname", [1, True, "foo"])

    assert call.statement() == 'execute({"module":"mname","fn":"fname","args":[1,true,"foo"]});'


def test_call_statement_rejects_unencodable_args() -> None:
    with pytest.raises(EncodeError):
        Call("m", "f", [float("nan")]).statement()


def test_default_timer_uses_running_event_loop() -> None:
    calls: list = []

    async def scenario() -> None:
        loader = Loader()
        loader.execute(Call("m", "f", [1]))
        await asyncio.sleep(0)
        loader.define("m", _recorder(calls))
        for _ in range(3):
            await asyncio.sleep(0)

    asyncio.run(scenario())

    assert calls == [(1,)]


def test_execute_defers_even_for_instantiated_modules() -> None:
    timer = FakeTimer()
    loader = Loader(timer)
    calls: list = []
    loader.define("m", _recorder(calls))
    timer.fire()
    loader.require("m")

    loader.execute(Call("m", "f", ["late"]))

    assert calls == []
    assert timer.fire() == 1
    assert calls == [("late",)]
