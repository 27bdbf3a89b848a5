# Path: core/errors.py
# Purpose: Define the error taxonomy raised by the repository core.
# Layer: core.
# Details: Subclasses builtin exception types so callers may catch either the domain or builtin class.

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for errors raised by the image repository core."""


class ValidationError(RepositoryError, ValueError):
    """Missing or malformed input, raised before any storage mutation."""


class NotFoundError(RepositoryError, LookupError):
    """A referenced image or rule does not exist where the operation requires it."""


class UpstreamError(RepositoryError, RuntimeError):
    """Failure reported by the external product catalog."""


__all__ = ["NotFoundError", "RepositoryError", "UpstreamError", "ValidationError"]
