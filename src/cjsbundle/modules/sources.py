"""Module variants backed by external sources: remote URLs and local files."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import httpx

from ..errors import FetchError
from .base import ParsedRequireMixin, parse_require

LOGGER = logging.getLogger(__name__)
MODULE_SUFFIX = ".js"


class URLModule(ParsedRequireMixin):
    """Module whose content is fetched over HTTP once and then memoised."""

    def __init__(
        self,
        name: str,
        url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self.name = name
        self.url = url
        self._client = client
        self._timeout = timeout
        self._content: bytes | None = None
        self._require: list[str] | None = None
        self._lock = threading.RLock()

    def content(self) -> bytes:
        with self._lock:
            if self._content is None:
                self._content = self._fetch()
            return self._content

    def _fetch(self) -> bytes:
        LOGGER.debug("Fetching module '%s' from %s", self.name, self.url)
        try:
            if self._client is not None:
                response = self._client.get(self.url)
            else:
                response = httpx.get(self.url, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"failed to fetch module {self.name} from {self.url}: {exc}") from exc
        return response.content

    def __repr__(self) -> str:
        return f"URLModule({self.name!r}, {self.url!r})"


class FileModule(ParsedRequireMixin):
    """Module read from a file.

    Content is re-read on every call so edits show up without a restart,
    unless ``cache`` is set, in which case the first read is kept.
    """

    def __init__(self, name: str, path: Path | str, *, cache: bool = False) -> None:
        self.name = name
        self.path = Path(path)
        self.cache = cache
        self._content: bytes | None = None
        self._require: list[str] | None = None
        self._lock = threading.RLock()

    def content(self) -> bytes:
        if not self.cache:
            return self._read()
        with self._lock:
            if self._content is None:
                self._content = self._read()
            return self._content

    def require(self) -> list[str]:
        if not self.cache:
            return parse_require(self._read())
        return super().require()

    def _read(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise FetchError(f"failed to read module {self.name} from {self.path}: {exc}") from exc

    def __repr__(self) -> str:
        return f"FileModule({self.name!r}, {str(self.path)!r})"


def modules_from_dir(root: Path | str, *, cache: bool = False) -> list[FileModule]:
    """Return a FileModule for every ``*.js`` file below ``root``.

    Names are relative POSIX paths without the extension, so ``a/foo.js``
    becomes ``a/foo``.
    """

    base = Path(root).expanduser()
    if not base.is_dir():
        raise FetchError(f"module directory not found: {base}")

    modules: list[FileModule] = []
    for path in sorted(base.rglob(f"*{MODULE_SUFFIX}")):
        if not path.is_file():
            continue
        name = path.relative_to(base).as_posix()[: -len(MODULE_SUFFIX)]
        modules.append(FileModule(name, path, cache=cache))
    return modules


__all__ = ["FileModule", "MODULE_SUFFIX", "URLModule", "modules_from_dir"]
