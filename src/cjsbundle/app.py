"""Application object tying providers, transforms, stores and the server together."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .modules import Module
from .packager import package
from .prelude import prelude_module
from .providers import ChainProvider, Provider
from .resolver import resolve
from .server import BUNDLE_EXTENSION, BundleServer
from .store import HASH_LENGTH, ByteStore, MemoryStore, content_key
from .transforms import Transform

if TYPE_CHECKING:
    from _typeshed.wsgi import StartResponse, WSGIEnvironment

LOGGER = logging.getLogger(__name__)
DEFAULT_MOUNT_PATH = "/r"
URL_KEY_LENGTH = 64


def normalize_mount_path(mount_path: str) -> str:
    """Return ``mount_path`` with a leading slash and no trailing slash."""

    stripped = mount_path.strip("/")
    return f"/{stripped}" if stripped else ""


def url_cache_key(names: Sequence[str]) -> str:
    """Order-sensitive URL-cache key for a list of root module names.

    The compact JSON form of the list is hashed so the key is a safe file
    name for any :class:`ByteStore`.
    """

    encoded = json.dumps(list(names), separators=(",", ":"))
    return content_key(encoded.encode("utf-8"), URL_KEY_LENGTH)


class App(ChainProvider):
    """A provider chain that can mint and serve bundle URLs.

    ``modules`` owned by the app shadow anything its fallback ``providers``
    offer. Bundles land in ``content_store`` keyed by content hash; minted
    URLs are remembered per root-name list in ``url_store`` so an unchanged
    request is neither re-resolved nor re-serialised.
    """

    def __init__(
        self,
        *,
        mount_path: str = DEFAULT_MOUNT_PATH,
        modules: Iterable[Module] = (),
        providers: Iterable[Provider] = (),
        transform: Transform | None = None,
        content_store: ByteStore | None = None,
        url_store: ByteStore | None = None,
        hash_length: int = HASH_LENGTH,
    ) -> None:
        super().__init__(modules=modules, providers=providers)
        self.mount_path = normalize_mount_path(mount_path)
        self.transform = transform
        self.content_store = content_store if content_store is not None else MemoryStore()
        self.url_store = url_store if url_store is not None else MemoryStore()
        self.hash_length = hash_length
        self.server = BundleServer(self.content_store, hash_length=hash_length)

    def bundle(
        self,
        names: Iterable[str],
        *,
        include_prelude: bool = False,
        provider: Provider | None = None,
    ) -> bytes:
        """Resolve ``names`` and return the serialised bundle bytes.

        ``provider`` replaces the app itself as the module source; it is used
        for lookups that layer extra modules over the app.
        """

        source = provider if provider is not None else self
        resolved = resolve(names, source)
        prelude = self.script_prelude() if include_prelude else None
        return package(resolved, source, transform=self.transform, prelude=prelude)

    def modules_url(self, names: Sequence[str]) -> str:
        """Return the URL of the bundle holding ``names`` and their dependencies."""

        cache_key = url_cache_key(names)
        cached = self.url_store.get(cache_key)
        if cached is not None:
            return cached.decode("utf-8")

        url = self.mint_url(names)
        self.url_store.store(cache_key, url.encode("utf-8"))
        return url

    def mint_url(self, names: Sequence[str], provider: Provider | None = None) -> str:
        """Bundle ``names``, store the bytes and return their URL, bypassing the URL cache."""

        data = self.bundle(names, provider=provider)
        key = content_key(data, self.hash_length)
        self.content_store.store(key, data)
        url = f"{self.mount_path}/{key}{BUNDLE_EXTENSION}"
        LOGGER.info("Minted %s for %s (%d bytes)", url, list(names), len(data))
        return url

    def script_prelude(self) -> bytes:
        """Return the loader runtime after this app's transform."""

        content = prelude_module().content()
        if self.transform is not None:
            content = self.transform.transform(content)
        return content

    def __call__(
        self, environ: WSGIEnvironment, start_response: StartResponse
    ) -> Iterable[bytes]:
        return self.server(environ, start_response)


__all__ = [
    "App",
    "DEFAULT_MOUNT_PATH",
    "URL_KEY_LENGTH",
    "normalize_mount_path",
    "url_cache_key",
]
