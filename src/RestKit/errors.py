"""Exception hierarchy shared across request assembly, transport, and decoding.

A single call crosses URL parsing, body marshalling, middleware, redirect
policy checks, socket I/O, and response decoding.  This module groups those
failure modes under :class:`RestKitError` so callers can catch everything the
client raises in one place while still reacting to specific categories (for
example, a vetoed redirect versus a timed-out transport).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checkers only
    from .response import Response

__all__ = [
    "RestKitError",
    "ConfigurationError",
    "MalformedURLError",
    "UnsupportedBodyTypeError",
    "MultipartNotAllowedError",
    "FileAttachmentError",
    "EncodingError",
    "DecodingError",
    "RedirectRejected",
    "TransportError",
    "TransportTimeoutError",
    "MiddlewareError",
]


class RestKitError(RuntimeError):
    """Base exception for every failure raised while executing a call."""


class ConfigurationError(RestKitError):
    """Raised when client settings or a settings file are invalid."""


class MalformedURLError(RestKitError):
    """Raised when the host URL or the request URL cannot be parsed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"parse {url}: {reason}")


class UnsupportedBodyTypeError(RestKitError):
    """Raised when a body value does not fit the declared content type."""

    def __init__(self, message: str = "Unsupported 'Body' type/value") -> None:
        super().__init__(message)


class MultipartNotAllowedError(RestKitError):
    """Raised when file attachments are combined with a body-less verb."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Multipart content is not allowed in HTTP verb [{method}]")


class FileAttachmentError(RestKitError):
    """Raised when a file referenced by a multipart field cannot be read."""

    def __init__(self, field: str, path: str, reason: str) -> None:
        self.field = field
        self.path = path
        super().__init__(f"unable to attach {path!r} as {field!r}: {reason}")


class EncodingError(RestKitError):
    """Raised when a structured body cannot be marshalled to bytes."""


class DecodingError(RestKitError):
    """Raised when a response body cannot be decoded into its target.

    The populated :class:`~RestKit.response.Response` is still available on
    :attr:`response`; only the decoding step failed.
    """

    def __init__(self, message: str, *, response: Optional["Response"] = None) -> None:
        super().__init__(message)
        self.response = response


class RedirectRejected(RestKitError):
    """Raised when a redirect policy vetoes the next hop."""

    def __init__(self, message: str, *, request: Any = None) -> None:
        super().__init__(message)
        self.request = request


class TransportError(RestKitError):
    """Raised when the underlying HTTP transport fails."""


class TransportTimeoutError(TransportError):
    """Raised when the transport gives up after the configured timeout."""


class MiddlewareError(RestKitError):
    """Raised when a middleware stage fails with a non-library exception."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        super().__init__(f"middleware {stage!r} failed: {cause}")


# === NAVMAP v1 ===
# {
#   "module": "RestKit.errors",
#   "purpose": "Define the exception hierarchy raised while executing a call",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "assembly", "name": "Request Assembly Errors", "anchor": "ASM", "kind": "api"},
#     {"id": "codec", "name": "Encoding & Decoding Errors", "anchor": "COD", "kind": "api"},
#     {"id": "transport", "name": "Redirect & Transport Failures", "anchor": "TRN", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
