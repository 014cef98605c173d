from __future__ import annotations

from pathlib import Path

import pytest

from cjsbundle.errors import NotFoundError
from cjsbundle.store import MemoryStore

MODULE_TREE = {
    "a/foo.js": "require('bar')\nrequire('b/baz')\n",
    "b/baz.js": "require('bar')\n",
    "bar.js": "bar\n",
}

EXPECTED_BUNDLE = (
    b'define("a/foo","require(\'bar\')\\nrequire(\'b/baz\')");\n'
    b'define("b/baz","require(\'bar\')");\n'
    b'define("bar","bar");\n'
)
EXPECTED_URL = "/r/a102771.js"


def write_modules(root: Path, tree: dict[str, str]) -> Path:
    for relative, body in tree.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
    return root


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    """Directory with a/foo -> (bar, b/baz), b/baz -> bar, bar."""

    return write_modules(tmp_path / "js", MODULE_TREE)


class FailingProvider:
    """Provider whose lookups fail with something other than NotFoundError."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def module(self, name: str):
        self.calls.append(name)
        raise RuntimeError("dummy error")


class MissingProvider:
    """Provider that never has anything."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def module(self, name: str):
        self.calls.append(name)
        raise NotFoundError(name)


class CountingStore(MemoryStore):
    """MemoryStore that records writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    def store(self, key: str, data: bytes) -> None:
        self.writes.append(key)
        super().store(key, data)
