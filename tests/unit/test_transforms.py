from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from cjsbundle.errors import FetchError, TransformError
from cjsbundle.transforms import Closure, CompilationLevel, JSMin, Transform, TransformChain


class Append:
    def __init__(self, suffix: bytes) -> None:
        self.suffix = suffix

    def transform(self, content: bytes) -> bytes:
        return content + self.suffix


def _closure_client(payload: object, seen: list[dict] | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(parse_qs(request.content.decode("utf-8")))
        return httpx.Response(200, json=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_chain_applies_left_to_right() -> None:
    chain = TransformChain(Append(b"1"), Append(b"2"))

    assert chain.transform(b"x") == b"x12"
    assert isinstance(chain, Transform)


def test_empty_chain_is_identity() -> None:
    assert TransformChain().transform(b"same") == b"same"


def test_jsmin_strips_whitespace() -> None:
    actual = JSMin().transform(b"function foo ( ) { return 1 ; }")

    assert actual.strip() == b"function foo(){return 1;}"


def test_jsmin_drops_comments() -> None:
    actual = JSMin().transform(b"// leading\nvar a = 1; /* block */ var b = 2;")

    assert b"leading" not in actual
    assert b"block" not in actual
    assert b"var a=1;" in actual


def test_jsmin_rejects_undecodable_input() -> None:
    with pytest.raises(TransformError, match="not valid UTF-8"):
        JSMin().transform(b"\xff\xfe")


def test_closure_posts_form_and_returns_compiled_code() -> None:
    seen: list[dict] = []
    client = _closure_client({"compiledCode": "function foo(){return 1};"}, seen)
    closure = Closure(CompilationLevel.WHITESPACE, client=client)

    actual = closure.transform(b"function foo() { return 1; }")

    assert actual == b"function foo(){return 1};"
    form = seen[0]
    assert form["js_code"] == ["function foo() { return 1; }"]
    assert form["compilation_level"] == ["WHITESPACE_ONLY"]
    assert form["output_format"] == ["json"]
    assert form["output_info"] == ["compiled_code"]


def test_closure_defaults_to_simple_optimizations() -> None:
    assert Closure().level is CompilationLevel.SIMPLE
    assert Closure("ADVANCED_OPTIMIZATIONS").level is CompilationLevel.ADVANCED


def test_closure_reports_compiler_errors() -> None:
    client = _closure_client({"compiledCode": "", "errors": [{"error": "Parse error."}]})

    with pytest.raises(TransformError, match="Parse error"):
        Closure(client=client).transform(b"function (")


def test_closure_requires_compiled_code() -> None:
    with pytest.raises(TransformError):
        Closure(client=_closure_client({})).transform(b"x")


def test_closure_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError):
        Closure(client=client).transform(b"x")


def test_closure_rejects_undecodable_input_before_posting() -> None:
    seen: list[dict] = []
    client = _closure_client({"compiledCode": "x"}, seen)

    with pytest.raises(TransformError, match="not valid UTF-8"):
        Closure(client=client).transform(b"\xff")
    assert seen == []


@pytest.mark.parametrize("payload", [["x"], "compiled", None, {"compiledCode": 1}])
def test_closure_rejects_malformed_responses(payload) -> None:
    with pytest.raises(TransformError):
        Closure(client=_closure_client(payload)).transform(b"x")


def test_closure_reports_server_errors_without_detail() -> None:
    client = _closure_client({"serverErrors": ["quota exceeded"]})

    with pytest.raises(TransformError, match="quota exceeded"):
        Closure(client=client).transform(b"x")
