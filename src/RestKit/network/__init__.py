"""Network subsystem: HTTPX transport, redirect policies, and HTTP policy constants.

This package sits between request assembly and the socket layer:
- HTTPX: HTTP/1.1 client with connection pooling, TLS via certifi, proxies

Modules:
- transport: lazily built HTTPX client and exception translation
- policy: HTTP policy constants (verb sets, timeouts, user agent)
- instrumentation: request/response debug log blocks
- redirect: redirect policies and manual redirect following

Example:
    >>> from RestKit.network import HttpTransport, FlexibleRedirectPolicy
    >>>
    >>> transport = HttpTransport()
    >>> request = transport.client.build_request("GET", url)
    >>> response, hops = transport.send(request, FlexibleRedirectPolicy(10))
"""

from RestKit.network.policy import (
    DEFAULT_USER_AGENT,
    HTTP_TIMEOUT,
    MAX_REDIRECT_HOPS,
    MULTIPART_METHODS,
    PAYLOAD_METHODS,
)
from RestKit.network.redirect import (
    AutoRedirectDisabled,
    CompositeRedirectPolicy,
    DomainCheckRedirectPolicy,
    FlexibleRedirectPolicy,
    MaxRedirectsExceeded,
    NoRedirectPolicy,
    RedirectPolicy,
    RedirectPolicyFunc,
    UnsafeRedirectTarget,
    format_audit_trail,
    send_with_redirects,
)
from RestKit.network.transport import HttpTransport, create_ssl_context

__all__ = [
    # Transport
    "HttpTransport",
    "create_ssl_context",
    # Policy constants
    "DEFAULT_USER_AGENT",
    "HTTP_TIMEOUT",
    "MAX_REDIRECT_HOPS",
    "PAYLOAD_METHODS",
    "MULTIPART_METHODS",
    # Redirect handling
    "RedirectPolicy",
    "NoRedirectPolicy",
    "FlexibleRedirectPolicy",
    "DomainCheckRedirectPolicy",
    "RedirectPolicyFunc",
    "CompositeRedirectPolicy",
    "AutoRedirectDisabled",
    "MaxRedirectsExceeded",
    "UnsafeRedirectTarget",
    "send_with_redirects",
    "format_audit_trail",
]
