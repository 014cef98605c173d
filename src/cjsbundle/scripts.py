"""Script tags for embedding the loader, queued calls and the bundle in a page."""

from __future__ import annotations

from collections.abc import Iterable

from markupsafe import Markup, escape

from .app import App
from .modules import Module
from .providers import ChainProvider
from .runtime import Call


def _inline(source: str) -> str:
    # "</" would terminate the inline script element early.
    return source.replace("</", "<\\/")


class AppScripts:
    """Render the loader prelude, ``execute`` calls and an async bundle tag.

    The inline block runs first and only queues calls; the bundle defines its
    modules whenever it arrives and the loader's flush picks the calls up.

    ``modules`` are generated for this render only (page configuration and
    the like). They shadow the app's modules of the same name, and a bundle
    that includes them is minted fresh rather than taken from the URL cache.
    """

    def __init__(
        self,
        app: App,
        calls: Iterable[Call] = (),
        modules: Iterable[Module] = (),
    ) -> None:
        self.app = app
        self.calls = list(calls)
        self.modules = list(modules)

    def module_names(self) -> list[str]:
        return list(dict.fromkeys(call.module for call in self.calls))

    def inline_source(self) -> str:
        prelude = self.app.script_prelude().decode("utf-8")
        statements = "".join(call.statement() for call in self.calls)
        return prelude + statements

    def url(self) -> str:
        names = self.module_names()
        if not self.modules:
            return self.app.modules_url(names)
        provider = ChainProvider(modules=self.modules, providers=[self.app])
        return self.app.mint_url(names, provider)

    def html(self) -> Markup:
        src = self.url()
        inline = _inline(self.inline_source())
        return Markup("<script>{}</script><script async src=\"{}\"></script>").format(
            Markup(inline), escape(src)
        )

    def __html__(self) -> str:
        return str(self.html())


__all__ = ["AppScripts", "Call"]
