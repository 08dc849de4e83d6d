# === NAVMAP v1 ===
# {
#   "module": "RestKit.network.redirect",
#   "purpose": "Redirect policies and manual redirect following with an audit trail.",
#   "sections": [
#     {"id": "autoredirectdisabled", "name": "AutoRedirectDisabled", "anchor": "class-autoredirectdisabled", "kind": "class"},
#     {"id": "maxredirectsexceeded", "name": "MaxRedirectsExceeded", "anchor": "class-maxredirectsexceeded", "kind": "class"},
#     {"id": "unsaferedirecttarget", "name": "UnsafeRedirectTarget", "anchor": "class-unsaferedirecttarget", "kind": "class"},
#     {"id": "redirectpolicy", "name": "RedirectPolicy", "anchor": "class-redirectpolicy", "kind": "class"},
#     {"id": "noredirectpolicy", "name": "NoRedirectPolicy", "anchor": "class-noredirectpolicy", "kind": "class"},
#     {"id": "flexibleredirectpolicy", "name": "FlexibleRedirectPolicy", "anchor": "class-flexibleredirectpolicy", "kind": "class"},
#     {"id": "domaincheckredirectpolicy", "name": "DomainCheckRedirectPolicy", "anchor": "class-domaincheckredirectpolicy", "kind": "class"},
#     {"id": "redirectpolicyfunc", "name": "RedirectPolicyFunc", "anchor": "class-redirectpolicyfunc", "kind": "class"},
#     {"id": "compositeredirectpolicy", "name": "CompositeRedirectPolicy", "anchor": "class-compositeredirectpolicy", "kind": "class"},
#     {"id": "build-redirect-request", "name": "build_redirect_request", "anchor": "function-build-redirect-request", "kind": "function"},
#     {"id": "send-with-redirects", "name": "send_with_redirects", "anchor": "function-send-with-redirects", "kind": "function"},
#     {"id": "format-audit-trail", "name": "format_audit_trail", "anchor": "function-format-audit-trail", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Redirect handling: policy objects plus manual redirect following.

HTTPX is always driven with ``follow_redirects=False``.  The send loop here
inspects every 3xx response, builds the next request itself, and asks the
configured :class:`RedirectPolicy` before the hop is taken.  A policy vetoes a
hop by raising a :class:`~RestKit.errors.RedirectRejected` subclass, which
stops the call immediately.

Example:
    >>> import httpx
    >>> from RestKit.network.redirect import FlexibleRedirectPolicy, send_with_redirects
    >>> client = httpx.Client(follow_redirects=False)
    >>> request = client.build_request("GET", "https://example.com/resource")
    >>> response, hops = send_with_redirects(client, request, FlexibleRedirectPolicy(5))
    >>> # hops = [
    >>> #     ("https://example.com/resource", 301),
    >>> #     ("https://cdn.example.com/data", 200),
    >>> # ]
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import httpx

from ..errors import RedirectRejected
from .policy import REDIRECT_STATUS_CODES

logger = logging.getLogger(__name__)

#: ``(url, status_code)`` for every response received during one call
AuditTrail = List[Tuple[str, int]]


# ============================================================================
# Exceptions
# ============================================================================


def _hop_label(request: httpx.Request) -> str:
    """Render ``request`` as ``"Get /path"`` for redirect error messages."""

    method = request.method[:1].upper() + request.method[1:].lower()
    target = request.url.raw_path.decode("ascii", errors="replace")
    return f"{method} {target}"


class AutoRedirectDisabled(RedirectRejected):
    """The client is configured not to follow redirects."""

    def __init__(self, request: httpx.Request):
        super().__init__(f"{_hop_label(request)}: Auto redirect is disabled", request=request)


class MaxRedirectsExceeded(RedirectRejected):
    """Redirect chain exceeds maximum allowed hops."""

    def __init__(self, request: httpx.Request, max_hops: int):
        self.max_hops = max_hops
        super().__init__(
            f"{_hop_label(request)}: Stopped after {max_hops} redirects", request=request
        )


class UnsafeRedirectTarget(RedirectRejected):
    """Redirect target host is not in the allowed set."""

    def __init__(self, request: httpx.Request, reason: str):
        self.target_url = str(request.url)
        self.reason = reason
        super().__init__(f"{_hop_label(request)}: {reason}", request=request)


# ============================================================================
# Redirect Policies
# ============================================================================


class RedirectPolicy(ABC):
    """Decides whether the next redirect hop may be followed.

    ``check`` receives the proposed next request and the requests already
    sent during this call, oldest first.  Returning normally allows the hop.

    Subclass to customize validation.
    """

    @abstractmethod
    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        """Raise a :class:`~RestKit.errors.RedirectRejected` to veto the hop."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NoRedirectPolicy(RedirectPolicy):
    """Reject the first redirect."""

    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        raise AutoRedirectDisabled(request)


class FlexibleRedirectPolicy(RedirectPolicy):
    """Follow up to ``max_hops`` redirects."""

    def __init__(self, max_hops: int):
        self.max_hops = max_hops

    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        if len(via) >= self.max_hops:
            raise MaxRedirectsExceeded(request, self.max_hops)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(max_hops={self.max_hops})"


class DomainCheckRedirectPolicy(RedirectPolicy):
    """Follow redirects only to the given hosts (compared case-insensitively)."""

    def __init__(self, *hosts: str):
        self.hosts = frozenset(host.lower() for host in hosts)

    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        host = (request.url.host or "").lower()
        if host not in self.hosts:
            raise UnsafeRedirectTarget(
                request, "Redirect is not allowed as per DomainCheckRedirectPolicy"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(sorted(self.hosts))})"


class RedirectPolicyFunc(RedirectPolicy):
    """Adapt a plain ``(request, via)`` callable into a policy.

    Exceptions other than :class:`~RestKit.errors.RedirectRejected` raised by
    the callable are wrapped so callers see one error type for vetoed hops.
    """

    def __init__(self, func: Callable[[httpx.Request, Sequence[httpx.Request]], None]):
        self.func = func

    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        try:
            self.func(request, via)
        except RedirectRejected:
            raise
        except Exception as exc:
            raise RedirectRejected(f"{_hop_label(request)}: {exc}", request=request) from exc

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"{self.__class__.__name__}({name})"


class CompositeRedirectPolicy(RedirectPolicy):
    """Run several policies in order; every one must allow the hop."""

    def __init__(self, policies: Iterable[RedirectPolicy]):
        self.policies = list(policies)
        if not self.policies:
            raise ValueError("at least one redirect policy is required")

    def check(self, request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        for policy in self.policies:
            policy.check(request, via)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.policies!r})"


def as_redirect_policy(*policies) -> RedirectPolicy:
    """Coerce policies and ``(request, via)`` callables into a single policy.

    Raises:
        ValueError: If no policy is given.
    """

    if not policies:
        raise ValueError("at least one redirect policy is required")
    resolved = [
        policy if isinstance(policy, RedirectPolicy) else RedirectPolicyFunc(policy)
        for policy in policies
    ]
    if len(resolved) == 1:
        return resolved[0]
    return CompositeRedirectPolicy(resolved)


# ============================================================================
# Redirect Following
# ============================================================================


def _redirect_method(method: str, status_code: int) -> str:
    """Return the method for the next hop, mirroring browser and httpx behaviour."""

    if status_code == httpx.codes.SEE_OTHER and method != "HEAD":
        return "GET"
    if status_code == httpx.codes.FOUND and method != "HEAD":
        return "GET"
    if status_code == httpx.codes.MOVED_PERMANENTLY and method == "POST":
        return "GET"
    return method


def _is_redirect(response: httpx.Response) -> bool:
    return response.status_code in REDIRECT_STATUS_CODES and "Location" in response.headers


def _same_origin(left: httpx.URL, right: httpx.URL) -> bool:
    return (left.scheme, left.host, left.port) == (right.scheme, right.host, right.port)


def build_redirect_request(response: httpx.Response) -> httpx.Request:
    """Build the request for the hop named by ``response``'s Location header.

    Raises:
        httpx.InvalidURL: If the Location header cannot be resolved.
    """

    previous = response.request
    url = response.url.join(response.headers["Location"])
    method = _redirect_method(previous.method, response.status_code)

    headers = httpx.Headers(previous.headers)
    headers.pop("Host", None)
    if not _same_origin(previous.url, url):
        headers.pop("Authorization", None)

    content: Optional[bytes] = None
    if method != previous.method:
        for name in ("Content-Type", "Content-Length", "Transfer-Encoding"):
            headers.pop(name, None)
    else:
        content = previous.read()

    return httpx.Request(
        method,
        url,
        headers=headers,
        content=content,
        extensions=dict(previous.extensions),
    )


def send_with_redirects(
    client: httpx.Client,
    request: httpx.Request,
    policy: RedirectPolicy,
) -> Tuple[httpx.Response, AuditTrail]:
    """Send ``request`` and follow redirects as ``policy`` allows.

    Follows redirects manually, validating each hop:
    1. Sends the request with automatic redirects disabled
    2. If the response carries a redirect Location, builds the next request
    3. Asks ``policy`` whether that request may be sent
    4. Records the hop in the audit trail
    5. Repeats until a terminal response or a veto

    Args:
        client: HTTPX Client
        request: First request of the call
        policy: Policy consulted before every hop

    Returns:
        Tuple of (final_response, audit_trail)
        - final_response: The terminal HTTP response
        - audit_trail: List of (url, status_code) tuples showing the path

    Raises:
        RedirectRejected: If the policy vetoes a hop
        httpx.HTTPError: If the underlying request fails
    """
    audit_trail: AuditTrail = []
    via: List[httpx.Request] = []

    while True:
        response = client.send(request, follow_redirects=False)
        audit_trail.append((str(request.url), response.status_code))
        via.append(request)

        if not _is_redirect(response):
            if len(audit_trail) > 1:
                logger.debug(
                    "Redirect following complete",
                    extra={"final_status": response.status_code, "hops": len(audit_trail)},
                )
            return response, audit_trail

        next_request = build_redirect_request(response)
        try:
            policy.check(next_request, via)
        except RedirectRejected as exc:
            response.close()
            logger.debug(
                "Redirect rejected",
                extra={
                    "source": str(request.url),
                    "target": str(next_request.url),
                    "reason": str(exc),
                    "hops": len(audit_trail),
                },
            )
            raise

        response.close()
        logger.debug(
            "Following redirect",
            extra={
                "from": str(request.url),
                "to": str(next_request.url),
                "status": response.status_code,
                "hop": len(via),
            },
        )
        request = next_request


# ============================================================================
# Utilities
# ============================================================================


def format_audit_trail(audit_trail: AuditTrail) -> str:
    """Format audit trail for logging/display.

    Args:
        audit_trail: List of (url, status) tuples

    Returns:
        Formatted string like "http://a (301) -> http://b (200)"
    """
    parts = [f"{url} ({status})" for url, status in audit_trail]
    return " -> ".join(parts)


__all__ = [
    "AuditTrail",
    "AutoRedirectDisabled",
    "MaxRedirectsExceeded",
    "UnsafeRedirectTarget",
    "RedirectPolicy",
    "NoRedirectPolicy",
    "FlexibleRedirectPolicy",
    "DomainCheckRedirectPolicy",
    "RedirectPolicyFunc",
    "CompositeRedirectPolicy",
    "as_redirect_policy",
    "build_redirect_request",
    "send_with_redirects",
    "format_audit_trail",
]
