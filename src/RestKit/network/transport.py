# === NAVMAP v1 ===
# {
#   "module": "RestKit.network.transport",
#   "purpose": "Lazily built HTTPX client that sends assembled requests under a redirect policy.",
#   "sections": [
#     {"id": "create-ssl-context", "name": "create_ssl_context", "anchor": "function-create-ssl-context", "kind": "function"},
#     {"id": "httptransport", "name": "HttpTransport", "anchor": "class-httptransport", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Transport boundary between request assembly and the network.

The assembler produces a fully-formed :class:`httpx.Request`.  This module
owns the :class:`httpx.Client` that sends it:

- **Lazy**: the client is built on first use under a lock.
- **Invalidated on change**: updating TLS, proxy, or the injected transport
  closes the current client; the next send rebuilds it.
- **Redirects**: always disabled at the HTTPX level and followed by
  :func:`~RestKit.network.redirect.send_with_redirects` instead.
- **Errors**: HTTPX exceptions are re-raised as
  :class:`~RestKit.errors.TransportError` subclasses.

Example:
    >>> from RestKit.network.transport import HttpTransport
    >>> from RestKit.network.redirect import NoRedirectPolicy
    >>> transport = HttpTransport()
    >>> request = transport.client.build_request("GET", "https://example.com")
    >>> response, hops = transport.send(request, NoRedirectPolicy())
    >>> transport.close()
"""

import logging
import ssl
import threading
from typing import Optional, Tuple, Union

import certifi
import httpx

from ..errors import TransportError, TransportTimeoutError
from .policy import TLS_VERIFY_ENABLED
from .redirect import AuditTrail, RedirectPolicy, send_with_redirects

logger = logging.getLogger(__name__)

VerifyTypes = Union[bool, ssl.SSLContext]


def create_ssl_context(verify: bool = TLS_VERIFY_ENABLED) -> ssl.SSLContext:
    """Create SSL context backed by the certifi bundle.

    Args:
        verify: When ``False`` hostname checks and certificate validation are off.

    Returns:
        Configured ssl.SSLContext for use with HTTPX
    """
    if not verify:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS verification DISABLED")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


class HttpTransport:
    """Own one lazily created :class:`httpx.Client` and send requests through it."""

    def __init__(
        self,
        *,
        verify: VerifyTypes = TLS_VERIFY_ENABLED,
        proxy: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._verify = verify
        self._proxy = proxy
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    # --- configuration ---

    @property
    def verify(self) -> VerifyTypes:
        return self._verify

    @property
    def proxy(self) -> Optional[str]:
        return self._proxy

    @property
    def transport(self) -> Optional[httpx.BaseTransport]:
        return self._transport

    def configure(self, **changes) -> None:
        """Update ``verify``, ``proxy`` or ``transport`` and drop the current client."""

        unknown = set(changes) - {"verify", "proxy", "transport"}
        if unknown:
            raise TypeError(f"unknown transport options: {sorted(unknown)}")
        with self._lock:
            for name, value in changes.items():
                setattr(self, f"_{name}", value)
            self._close_locked()

    # --- client lifecycle ---

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTPX client (thread-safe)."""

        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                self._client = self._create_client()
            return self._client

    def _create_client(self) -> httpx.Client:
        verify = self._verify
        if isinstance(verify, bool):
            verify = create_ssl_context(verify)

        client = httpx.Client(
            verify=verify,
            proxy=self._proxy,
            transport=self._transport,
            follow_redirects=False,
        )
        logger.debug(
            "HTTPX client created",
            extra={
                "proxy": self._proxy,
                "custom_transport": self._transport is not None,
            },
        )
        return client

    def _close_locked(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.debug("HTTPX client closed")
            self._client = None

    def close(self) -> None:
        """Close the HTTPX client; safe to call repeatedly."""

        with self._lock:
            self._close_locked()

    # --- sending ---

    def send(
        self, request: httpx.Request, policy: RedirectPolicy
    ) -> Tuple[httpx.Response, AuditTrail]:
        """Send ``request`` following redirects as ``policy`` allows.

        Raises:
            TransportTimeoutError: If HTTPX times out.
            TransportError: For every other HTTPX failure.
            RedirectRejected: If ``policy`` vetoes a hop.
        """

        try:
            return send_with_redirects(self.client, request, policy)
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError(f"{request.method} {request.url}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{request.method} {request.url}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise TransportError(f"{request.method} {request.url}: {exc}") from exc

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(proxy={self._proxy!r}, "
            f"custom_transport={self._transport is not None})"
        )


__all__ = ["HttpTransport", "create_ssl_context"]
