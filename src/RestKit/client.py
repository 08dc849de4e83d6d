# === NAVMAP v1 ===
# {
#   "module": "RestKit.client",
#   "purpose": "Long-lived client configuration and the call execution pipeline",
#   "sections": [
#     {"id": "cookie", "name": "Cookie", "anchor": "class-cookie", "kind": "class"},
#     {"id": "client", "name": "Client", "anchor": "class-client", "kind": "class"},
#     {"id": "execute", "name": "Client.execute", "anchor": "function-execute", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Client configuration and call execution.

A :class:`Client` carries the defaults every call shares: host URL, headers,
query parameters, form fields, credentials, cookies, transport options, the
redirect policy, and user middleware.  Calls are built with
:meth:`Client.new_request` and executed through two middleware chains around
the transport send.

Example:
    >>> from RestKit import Client
    >>> with Client().set_host_url("https://api.example.com") as client:
    ...     response = client.new_request().set_query_param("q", "x").get("/search")
    ...     print(response.status)
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import httpx
from requests.structures import CaseInsensitiveDict

from .assembler import (
    add_credentials,
    create_http_request,
    parse_request_body,
    parse_request_header,
    parse_request_url,
)
from .codec import parse_response_body
from .errors import MultipartNotAllowedError
from .middleware import (
    FunctionMiddleware,
    Middleware,
    MiddlewareChain,
    StageLike,
    as_middleware,
    request_logger,
    response_logger,
)
from .network.policy import (
    DEFAULT_USER_AGENT,
    HTTP_TIMEOUT,
    MAX_REDIRECT_HOPS,
    MULTIPART_METHODS,
    PAYLOAD_METHODS,
    TLS_VERIFY_ENABLED,
)
from .network.redirect import (
    FlexibleRedirectPolicy,
    NoRedirectPolicy,
    RedirectPolicy,
    as_redirect_policy,
    format_audit_trail,
)
from .network.transport import HttpTransport
from .request import Request
from .response import Response
from .settings import ClientSettings

__all__ = ["Client", "Cookie", "BUILTIN_REQUEST_STAGES", "BUILTIN_RESPONSE_STAGES"]

logger = logging.getLogger(__name__)

REST_MODE = "rest"
HTTP_MODE = "http"

#: Pre-request stages run before any user middleware
BUILTIN_REQUEST_STAGES: Tuple[Middleware, ...] = (
    FunctionMiddleware(parse_request_url),
    FunctionMiddleware(parse_request_header),
    FunctionMiddleware(parse_request_body),
    FunctionMiddleware(create_http_request),
    FunctionMiddleware(add_credentials),
    FunctionMiddleware(request_logger),
)

#: Post-response stages run before any user middleware in "rest" mode
BUILTIN_RESPONSE_STAGES: Tuple[Middleware, ...] = (
    FunctionMiddleware(response_logger),
    FunctionMiddleware(parse_response_body),
)

_HTTP_MODE_RESPONSE_STAGES: Tuple[Middleware, ...] = (FunctionMiddleware(response_logger),)


@dataclass(frozen=True)
class Cookie:
    """A cookie sent with every request of a client."""

    name: str
    value: str

    def header_value(self) -> str:
        return f"{self.name}={self.value}"


class Client:
    """Shared configuration for HTTP calls.

    Setters are fluent and return the client.  The underlying
    :class:`httpx.Client` is created lazily and released by :meth:`close`;
    the client is also a context manager.
    """

    def __init__(
        self,
        *,
        host_url: str = "",
        timeout: Optional[float] = HTTP_TIMEOUT,
        verify: Union[bool, ssl.SSLContext] = TLS_VERIFY_ENABLED,
        proxy: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = MAX_REDIRECT_HOPS,
        payload_methods: Iterable[str] = PAYLOAD_METHODS,
        multipart_methods: Iterable[str] = MULTIPART_METHODS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.host_url = host_url
        self.headers = httpx.Headers()
        self.query_params: CaseInsensitiveDict = CaseInsensitiveDict()
        self.form_data: CaseInsensitiveDict = CaseInsensitiveDict()
        self.basic_auth: Optional[Tuple[str, str]] = None
        self.token = ""
        self.cookies: List[Cookie] = []
        self.timeout = timeout
        self.content_length = False
        self.debug = False
        self.logger = logger or logging.getLogger("RestKit")
        self.error_type: Optional[type] = None
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self.payload_methods = frozenset(method.upper() for method in payload_methods)
        self.multipart_methods = frozenset(method.upper() for method in multipart_methods)
        self.mode = REST_MODE
        self.redirect_policy: RedirectPolicy = NoRedirectPolicy()
        self.before_request: List[Middleware] = []
        self.after_response: List[Middleware] = []
        self._transport = HttpTransport(verify=verify, proxy=None, transport=transport)
        if proxy:
            self.set_proxy(proxy)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "Client":
        """Build a client from :class:`~RestKit.settings.ClientSettings`.

        Keyword arguments are passed to the constructor and beat the settings.
        """

        options = {
            "host_url": settings.host_url,
            "timeout": settings.timeout,
            "verify": settings.verify_tls,
            "proxy": settings.proxy,
            "user_agent": settings.user_agent,
            "max_redirects": settings.max_redirects,
            "payload_methods": settings.payload_methods,
            "multipart_methods": settings.multipart_methods,
        }
        options.update(kwargs)
        client = cls(**options)
        client.set_debug(settings.debug).set_content_length(settings.set_content_length)
        client.logger.setLevel(settings.level_int())
        if settings.mode == HTTP_MODE:
            client.set_http_mode()
        return client

    # --- request defaults ---

    def set_host_url(self, url: str) -> "Client":
        self.host_url = url.rstrip("/")
        return self

    def set_header(self, name: str, value: str) -> "Client":
        self.headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "Client":
        for name, value in headers.items():
            self.headers[name] = value
        return self

    def set_query_param(self, name: str, value: Any) -> "Client":
        self.query_params[name] = value
        return self

    def set_query_params(self, params: Mapping[str, Any]) -> "Client":
        for name, value in params.items():
            self.query_params[name] = value
        return self

    def set_form_data(self, data: Mapping[str, Any]) -> "Client":
        for name, value in data.items():
            self.form_data[name] = value
        return self

    def set_content_length(self, enabled: bool = True) -> "Client":
        self.content_length = enabled
        return self

    # --- credentials and cookies ---

    def set_basic_auth(self, username: str, password: str) -> "Client":
        self.basic_auth = (username, password)
        return self

    def set_auth_token(self, token: str) -> "Client":
        self.token = token
        return self

    def set_cookie(self, cookie: Union[Cookie, str], value: Optional[str] = None) -> "Client":
        """Add a cookie, given as a :class:`Cookie` or as ``name, value``."""
        if not isinstance(cookie, Cookie):
            cookie = Cookie(cookie, "" if value is None else value)
        self.cookies.append(cookie)
        return self

    def set_cookies(self, cookies: Iterable[Cookie]) -> "Client":
        for cookie in cookies:
            self.set_cookie(cookie)
        return self

    # --- response handling and diagnostics ---

    def set_error(self, error_type: type) -> "Client":
        """Set the type decoded from error responses when a call names none."""
        if not isinstance(error_type, type):
            error_type = type(error_type)
        self.error_type = error_type
        return self

    def set_debug(self, enabled: bool = True) -> "Client":
        self.debug = enabled
        return self

    def set_logger(self, sink: logging.Logger) -> "Client":
        self.logger = sink
        return self

    # --- transport ---

    def set_timeout(self, seconds: Optional[float]) -> "Client":
        self.timeout = seconds
        return self

    def set_proxy(self, proxy_url: str) -> "Client":
        """Route calls through ``proxy_url``; an invalid URL is logged and clears the proxy."""
        try:
            parsed = httpx.URL(proxy_url)
            if not parsed.scheme or not parsed.host:
                raise httpx.InvalidURL(f"proxy URL must be absolute: {proxy_url!r}")
        except httpx.InvalidURL as exc:
            self.logger.error("ERROR [%s]", exc, extra={"stage": "set_proxy"})
            self._transport.configure(proxy=None)
            return self
        self._transport.configure(proxy=str(parsed))
        return self

    def remove_proxy(self) -> "Client":
        self._transport.configure(proxy=None)
        return self

    @property
    def proxy(self) -> Optional[str]:
        return self._transport.proxy

    def set_tls_client_config(self, config: Union[bool, ssl.SSLContext]) -> "Client":
        """Use ``config`` for TLS: an :class:`ssl.SSLContext`, or a verify flag."""
        self._transport.configure(verify=config)
        return self

    def set_transport(self, transport: Optional[httpx.BaseTransport]) -> "Client":
        """Send through ``transport`` instead of the network (tests, custom stacks)."""
        self._transport.configure(transport=transport)
        return self

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    # --- redirects and modes ---

    def set_redirect_policy(self, *policies) -> "Client":
        """Use ``policies`` (policy objects or ``(request, via)`` callables) for redirects.

        Without arguments, up to ``max_redirects`` hops are followed.
        """
        if not policies:
            self.redirect_policy = FlexibleRedirectPolicy(self.max_redirects)
            return self
        self.redirect_policy = as_redirect_policy(*policies)
        return self

    def set_http_mode(self) -> "Client":
        """Follow up to ``max_redirects`` redirects and skip response body decoding."""
        self.mode = HTTP_MODE
        self.redirect_policy = FlexibleRedirectPolicy(self.max_redirects)
        return self

    def set_rest_mode(self) -> "Client":
        """Reject redirects and decode structured response bodies."""
        self.mode = REST_MODE
        self.redirect_policy = NoRedirectPolicy()
        return self

    # --- middleware ---

    def on_before_request(self, middleware: StageLike) -> "Client":
        self.before_request.append(as_middleware(middleware))
        return self

    def on_after_response(self, middleware: StageLike) -> "Client":
        self.after_response.append(as_middleware(middleware))
        return self

    def request_chain(self) -> MiddlewareChain:
        return MiddlewareChain([*BUILTIN_REQUEST_STAGES, *self.before_request])

    def response_chain(self) -> MiddlewareChain:
        builtins = BUILTIN_RESPONSE_STAGES if self.mode == REST_MODE else _HTTP_MODE_RESPONSE_STAGES
        return MiddlewareChain([*builtins, *self.after_response])

    # --- execution ---

    def new_request(self) -> Request:
        return Request(self)

    def execute(self, request: Request) -> Response:
        """Assemble, send, and post-process ``request``.

        Raises:
            MultipartNotAllowedError: If attachments are set on a verb without multipart support.
            RestKitError: For every other failure along the pipeline.
        """

        if request.has_attachments and request.method not in self.multipart_methods:
            raise MultipartNotAllowedError(request.method)

        self.request_chain().run(self, request)

        request.sent_at = datetime.now()
        raw_response, history = self._transport.send(request.raw_request, self.redirect_policy)
        response = Response(request, raw_response, received_at=datetime.now(), history=history)
        if len(history) > 1:
            logger.debug(
                "redirects followed",
                extra={"stage": "execute", "trail": format_audit_trail(history)},
            )

        self.response_chain().run(self, response)
        return response

    # --- lifecycle ---

    def close(self) -> None:
        """Release the underlying HTTPX client; safe to call repeatedly."""
        self._transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Client host_url={self.host_url!r} mode={self.mode!r}>"
