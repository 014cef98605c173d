"""Providers resolve module names to modules and chain with fallback."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import InvalidModuleError, NotFoundError
from .modules import FileModule, Module
from .modules.sources import MODULE_SUFFIX

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Provider(Protocol):
    """Looks up modules by name."""

    def module(self, name: str) -> Module:
        """Return the named module or raise :class:`NotFoundError`."""


def _check_name(module: Module) -> None:
    if not module.name:
        raise InvalidModuleError("module does not have a name")


class CustomProvider:
    """Provider over an explicit set of registered modules."""

    def __init__(self, modules: Iterable[Module] = ()) -> None:
        self._modules: OrderedDict[str, Module] = OrderedDict()
        for module in modules:
            self.add(module)

    def add(self, module: Module) -> None:
        _check_name(module)
        if module.name in self._modules:
            raise InvalidModuleError(f"module {module.name} already exists")
        self._modules[module.name] = module

    def module(self, name: str) -> Module:
        try:
            return self._modules[name]
        except KeyError:
            raise NotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)


class ChainProvider:
    """Owned modules first, then fallback providers in registration order.

    Directly owned modules shadow anything the fallbacks would return. A
    :class:`NotFoundError` from one fallback moves on to the next; any other
    exception aborts the lookup.
    """

    def __init__(
        self,
        modules: Iterable[Module] = (),
        providers: Iterable[Provider] = (),
    ) -> None:
        self.modules: list[Module] = []
        self.providers: list[Provider] = list(providers)
        for module in modules:
            self.add_module(module)

    def add_module(self, module: Module) -> None:
        _check_name(module)
        self.modules.append(module)

    def add_provider(self, provider: Provider) -> None:
        self.providers.append(provider)

    def module(self, name: str) -> Module:
        for module in self.modules:
            if module.name == name:
                return module
        for provider in self.providers:
            try:
                return provider.module(name)
            except NotFoundError:
                continue
        raise NotFoundError(name)


class DirProvider:
    """Provider mapping ``name`` to ``<root>/<name>.js``."""

    def __init__(self, root: Path | str, *, cache: bool = False) -> None:
        self.root = Path(root).expanduser()
        self.cache = cache

    def module(self, name: str) -> Module:
        if not name:
            raise NotFoundError(name)
        root = self.root.resolve()
        path = (root / f"{name}{MODULE_SUFFIX}").resolve()
        if root not in path.parents or not path.is_file():
            raise NotFoundError(name)
        LOGGER.debug("Resolved module '%s' to %s", name, path)
        return FileModule(name, path, cache=self.cache)

    def __repr__(self) -> str:
        return f"DirProvider({str(self.root)!r})"


__all__ = ["ChainProvider", "CustomProvider", "DirProvider", "Provider"]
