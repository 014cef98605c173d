"""WSGI endpoint serving stored bundles by their content-hash URL."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from typing import TYPE_CHECKING

from werkzeug.wrappers import Request, Response

from .errors import MalformedRequestError, StoreError
from .store import HASH_LENGTH, ByteStore

if TYPE_CHECKING:
    from _typeshed.wsgi import StartResponse, WSGIEnvironment

LOGGER = logging.getLogger(__name__)

BUNDLE_EXTENSION = ".js"
CONTENT_TYPE = "text/javascript"
INVALID_URL_BODY = "invalid url\n"
NOT_FOUND_BODY = "not found\n"
INTERNAL_ERROR_BODY = "internal server error\n"


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, content_type="text/plain; charset=utf-8")


class BundleServer:
    """Serve ``<mount>/<key>.js`` straight out of a content store.

    Only the basename is inspected; anything whose length does not match a
    key plus extension is rejected before the store is touched.
    """

    def __init__(self, store: ByteStore, *, hash_length: int = HASH_LENGTH) -> None:
        self.store = store
        self.hash_length = hash_length

    def key_for(self, path: str) -> str:
        """Return the store key addressed by ``path``."""

        basename = posixpath.basename(path)
        if len(basename) != self.hash_length + len(BUNDLE_EXTENSION):
            raise MalformedRequestError(f"invalid bundle path: {path}")
        return basename[: self.hash_length]

    def serve(self, path: str) -> Response:
        try:
            key = self.key_for(path)
        except MalformedRequestError:
            return _text(INVALID_URL_BODY, 404)

        try:
            data = self.store.get(key)
        except StoreError:
            LOGGER.exception("Failed to load bundle '%s'", key)
            return _text(INTERNAL_ERROR_BODY, 500)

        if data is None:
            return _text(NOT_FOUND_BODY, 404)
        return Response(data, status=200, content_type=CONTENT_TYPE)

    def __call__(
        self, environ: WSGIEnvironment, start_response: StartResponse
    ) -> Iterable[bytes]:
        request = Request(environ)
        response = self.serve(request.path)
        return response(environ, start_response)


__all__ = [
    "BUNDLE_EXTENSION",
    "BundleServer",
    "CONTENT_TYPE",
    "INTERNAL_ERROR_BODY",
    "INVALID_URL_BODY",
    "NOT_FOUND_BODY",
]
