"""Exceptions raised by the manifest analyser."""

from __future__ import annotations


class BundleLensError(Exception):
    """Base class for analyser errors."""


class ManifestError(BundleLensError, ValueError):
    """The manifest JSON does not have the expected shape."""


class InitialOutputNotFoundError(BundleLensError, LookupError):
    """No output could be chosen as the application's first-loaded bundle."""

    def __init__(self, message: str = "Could not determine initial output") -> None:
        super().__init__(message)
