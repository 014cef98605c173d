"""Exception hierarchy shared by the bundler components."""

from __future__ import annotations


class BundleError(Exception):
    """Base exception for all bundler errors."""


class NotFoundError(BundleError, LookupError):
    """A named module or stored bundle does not exist.

    Providers raise this so that chains can fall through to the next source;
    every other exception aborts a lookup.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f"module {name} was not found")
        self.name = name


class InvalidModuleError(BundleError, ValueError):
    """Raised when a module cannot be registered (empty or duplicate name)."""


class FetchError(BundleError):
    """Module content could not be read from the network or filesystem."""


class EncodeError(BundleError):
    """A value could not be serialised to JSON."""


class TransformError(BundleError):
    """A transform rejected its input."""


class MalformedRequestError(BundleError):
    """A bundle request path does not have the expected hash+extension shape."""


class StoreError(BundleError):
    """The content store failed to read or write an entry."""


__all__ = [
    "BundleError",
    "EncodeError",
    "FetchError",
    "InvalidModuleError",
    "MalformedRequestError",
    "NotFoundError",
    "StoreError",
    "TransformError",
]
