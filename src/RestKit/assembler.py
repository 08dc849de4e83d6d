# === NAVMAP v1 ===
# {
#   "module": "RestKit.assembler",
#   "purpose": "Built-in pre-request stages that turn a Request into an httpx.Request",
#   "sections": [
#     {"id": "parse-request-url", "name": "parse_request_url", "anchor": "function-parse-request-url", "kind": "function"},
#     {"id": "parse-request-header", "name": "parse_request_header", "anchor": "function-parse-request-header", "kind": "function"},
#     {"id": "parse-request-body", "name": "parse_request_body", "anchor": "function-parse-request-body", "kind": "function"},
#     {"id": "create-http-request", "name": "create_http_request", "anchor": "function-create-http-request", "kind": "function"},
#     {"id": "add-credentials", "name": "add_credentials", "anchor": "function-add-credentials", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Request assembly.

Each function here is a pre-request stage with the ``(client, request)``
signature.  They run in the order listed in :data:`BUILTIN_REQUEST_STAGES`
and progressively merge client defaults with per-call values:

1. ``parse_request_url``: resolve against the host URL and merge the query
2. ``parse_request_header``: merge headers, default User-Agent and Accept
3. ``parse_request_body``: multipart, form, or structured/raw body
4. ``create_http_request``: build the :class:`httpx.Request` with cookies
5. ``add_credentials``: basic auth and bearer token
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from .codec import encode_payload
from .content import detect_content_type, negotiate_body_encoding
from .errors import MalformedURLError
from .multipart import build_form_body, build_multipart_body, merge_fields

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client
    from .request import Request

__all__ = [
    "parse_request_url",
    "parse_request_header",
    "parse_request_body",
    "create_http_request",
    "add_credentials",
    "merge_query",
    "cookie_header",
]

logger = logging.getLogger(__name__)

_HTTP_SCHEMES = {"http", "https"}


# --- URL ---


def _values(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def merge_query(existing: str, *layers: Mapping[str, Any]) -> str:
    """Merge ``layers`` over the ``existing`` query string and re-encode it.

    A key set by a later layer replaces every value of that key from earlier
    layers (compared case-insensitively).  Keys are emitted sorted.
    """

    merged: Dict[str, List[str]] = {}
    for key, value in parse_qsl(existing, keep_blank_values=True):
        merged.setdefault(key, []).append(value)
    for layer in layers:
        for key, value in layer.items():
            for stale in [name for name in merged if name.lower() == str(key).lower()]:
                del merged[stale]
            merged[str(key)] = _values(value)
    return urlencode([(key, value) for key in sorted(merged) for value in merged[key]])


def parse_request_url(client: "Client", request: "Request") -> None:
    """Resolve the request URL against the host URL and merge query parameters."""

    url = request.url
    try:
        if not urlsplit(url).scheme:
            path = url if url.startswith("/") else "/" + url
            url = client.host_url + path
        parts = urlsplit(url)
    except ValueError as exc:
        raise MalformedURLError(url, str(exc)) from exc

    if parts.scheme.lower() not in _HTTP_SCHEMES:
        raise MalformedURLError(url, f"unsupported protocol scheme {parts.scheme!r}")
    if not parts.netloc:
        raise MalformedURLError(url, "no host in request URL")

    query = merge_query(parts.query, client.query_params, request.query_params)
    resolved = urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
    try:
        httpx.URL(resolved)
    except httpx.InvalidURL as exc:
        raise MalformedURLError(resolved, str(exc)) from exc
    request.url = resolved


# --- Headers ---


def parse_request_header(client: "Client", request: "Request") -> None:
    """Merge client and request headers, then apply User-Agent and Accept defaults."""

    headers = httpx.Headers()
    for key, value in client.headers.items():
        headers[key] = value
    for key, value in request.headers.items():
        headers[key] = value

    if not headers.get("User-Agent"):
        headers["User-Agent"] = client.user_agent
    else:
        headers["X-User-Agent"] = client.user_agent

    content_type = headers.get("Content-Type")
    if not headers.get("Accept") and content_type:
        headers["Accept"] = content_type

    request.headers = headers


# --- Body ---


def _multipart_body(client: "Client", request: "Request") -> Tuple[bytes, str]:
    return build_multipart_body(merge_fields(client.form_data, request.form_data))


def _prepare_body(client: "Client", request: "Request") -> None:
    if request.method not in client.payload_methods:
        request.headers.pop("Content-Type", None)
        return

    if request.has_attachments:
        body, content_type = _multipart_body(client, request)
        request.body_bytes = body
        request.headers["Content-Type"] = content_type
        return

    if client.form_data or request.form_data:
        body, content_type = build_form_body(merge_fields(client.form_data, request.form_data))
        request.body_bytes = body
        request.headers["Content-Type"] = content_type
        request.is_form_data = True
        return

    payload = request.payload
    if payload is not None:
        content_type = request.headers.get("Content-Type")
        if not content_type:
            content_type = detect_content_type(payload)
            request.headers["Content-Type"] = content_type
        encoding = negotiate_body_encoding(content_type, payload)
        request.body_bytes = encode_payload(payload, encoding)


def parse_request_body(client: "Client", request: "Request") -> None:
    """Serialize the body for verbs that carry one and set its Content-Type."""

    _prepare_body(client, request)
    if (client.content_length or request.content_length) and request.body_bytes is not None:
        request.headers["Content-Length"] = str(len(request.body_bytes))


# --- Wire request ---


def cookie_header(existing: str, cookies) -> str:
    """Append ``cookies`` to an existing ``Cookie`` header value."""

    pairs = [cookie.header_value() for cookie in cookies]
    if existing:
        pairs.insert(0, existing)
    return "; ".join(pairs)


def create_http_request(client: "Client", request: "Request") -> None:
    """Build the :class:`httpx.Request` and attach the client's cookies."""

    headers = request.headers
    if client.cookies:
        headers["Cookie"] = cookie_header(headers.get("Cookie", ""), client.cookies)

    raw = httpx.Request(
        request.method,
        request.url,
        headers=headers,
        content=request.body_bytes,
        extensions={"timeout": httpx.Timeout(client.timeout).as_dict()},
    )
    request.raw_request = raw
    request.headers = raw.headers


# --- Credentials ---


def _basic_auth_value(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def add_credentials(client: "Client", request: "Request") -> None:
    """Apply basic auth then bearer token; request-level values win."""

    raw = request.raw_request
    basic_auth = request.basic_auth or client.basic_auth
    if basic_auth is not None:
        raw.headers["Authorization"] = _basic_auth_value(*basic_auth)
        if not request.url.startswith("https"):
            client.logger.warning(
                "WARNING - Using Basic Auth in HTTP mode is not secure.",
                extra={"stage": "add_credentials"},
            )

    token = request.token or client.token
    if token:
        raw.headers["Authorization"] = f"Bearer {token}"
