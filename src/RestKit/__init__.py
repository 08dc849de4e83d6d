"""RestKit: a small HTTP client for REST APIs built on HTTPX.

A :class:`Client` holds shared defaults; :meth:`Client.new_request` builds a
per-call :class:`Request`; verbs return a :class:`Response` or raise a
:class:`RestKitError`.

Example:
    >>> from RestKit import Client
    >>> client = Client().set_host_url("https://api.example.com")
    >>> response = client.new_request().set_result(dict).get("/status")
    >>> response.result()
"""

from .client import Client, Cookie
from .errors import (
    ConfigurationError,
    DecodingError,
    EncodingError,
    FileAttachmentError,
    MalformedURLError,
    MiddlewareError,
    MultipartNotAllowedError,
    RedirectRejected,
    RestKitError,
    TransportError,
    TransportTimeoutError,
    UnsupportedBodyTypeError,
)
from .middleware import FunctionMiddleware, Middleware, MiddlewareChain
from .network.policy import PACKAGE_VERSION
from .network.redirect import (
    AutoRedirectDisabled,
    CompositeRedirectPolicy,
    DomainCheckRedirectPolicy,
    FlexibleRedirectPolicy,
    MaxRedirectsExceeded,
    NoRedirectPolicy,
    RedirectPolicy,
    RedirectPolicyFunc,
    UnsafeRedirectTarget,
)
from .request import Request
from .response import Response
from .settings import ClientSettings, load_settings

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    # Data holders
    "Client",
    "Cookie",
    "Request",
    "Response",
    # Configuration
    "ClientSettings",
    "load_settings",
    # Middleware
    "Middleware",
    "FunctionMiddleware",
    "MiddlewareChain",
    # Redirect policies
    "RedirectPolicy",
    "NoRedirectPolicy",
    "FlexibleRedirectPolicy",
    "DomainCheckRedirectPolicy",
    "RedirectPolicyFunc",
    "CompositeRedirectPolicy",
    # Errors
    "RestKitError",
    "ConfigurationError",
    "MalformedURLError",
    "UnsupportedBodyTypeError",
    "MultipartNotAllowedError",
    "FileAttachmentError",
    "EncodingError",
    "DecodingError",
    "RedirectRejected",
    "AutoRedirectDisabled",
    "MaxRedirectsExceeded",
    "UnsafeRedirectTarget",
    "TransportError",
    "TransportTimeoutError",
    "MiddlewareError",
]
