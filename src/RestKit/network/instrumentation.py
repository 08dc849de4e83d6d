# === NAVMAP v1 ===
# {
#   "module": "RestKit.network.instrumentation",
#   "purpose": "Debug log blocks for requests and responses.",
#   "sections": [
#     {"id": "masked-headers", "name": "masked_headers", "anchor": "function-masked-headers", "kind": "function"},
#     {"id": "body-preview", "name": "body_preview", "anchor": "function-body-preview", "kind": "function"},
#     {"id": "format-request-log", "name": "format_request_log", "anchor": "function-format-request-log", "kind": "function"},
#     {"id": "format-response-log", "name": "format_response_log", "anchor": "function-format-response-log", "kind": "function"},
#     {"id": "redact-url", "name": "redact_url", "anchor": "function-redact-url", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Debug log formatting for HTTP calls.

Renders the human-readable request and response blocks emitted when a
client runs in debug mode, plus the structured fields attached to the same
log record for JSON handlers.  Credential headers are always masked.
"""

import json
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from ..content import is_json_type, is_xml_type
from .policy import MASKED_HEADERS

NO_CONTENT = "***** NO CONTENT *****"
MASK = "***masked***"

_RULE = "-" * 58


def masked_headers(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Return header pairs with credential values replaced by a mask."""

    return [
        (name, MASK if name.lower() in MASKED_HEADERS else value) for name, value in headers
    ]


def _grouped(headers: httpx.Headers) -> Dict[str, str]:
    grouped: Dict[str, List[str]] = {}
    for name, value in masked_headers(headers.multi_items()):
        grouped.setdefault(name.title(), []).append(value)
    return {name: ", ".join(values) for name, values in grouped.items()}


def body_preview(content_type: Optional[str], body: Optional[bytes]) -> str:
    """Render ``body`` for a log block; JSON is pretty-printed."""

    if not body:
        return NO_CONTENT
    text = body.decode("utf-8", errors="replace")
    if is_json_type(content_type):
        try:
            return json.dumps(json.loads(text), indent=3, ensure_ascii=False)
        except ValueError:
            return text
    if is_xml_type(content_type) or content_type is None or content_type.startswith("text/"):
        return text
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/")):
        return text
    return f"***** BODY IS byte(s) (size - {len(body)}) *****"


def redact_url(url: httpx.URL) -> str:
    """Drop the query string and userinfo from ``url``."""

    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{url.host}{port}{url.path}"


def format_request_log(
    request: httpx.Request, body: Optional[bytes]
) -> Tuple[str, Dict[str, Any]]:
    """Build the request debug block and its structured fields.

    Returns:
        Tuple of (message, extra_fields)
    """
    target = request.url.raw_path.decode("ascii", errors="replace")
    protocol = "HTTP/1.1"
    headers = _grouped(request.headers)
    body_text = body_preview(request.headers.get("Content-Type"), body)

    lines = [
        "",
        "---------------------- REQUEST LOG -----------------------",
        f"{request.method}  {target}  {protocol}",
        f"HOST   : {request.url.netloc.decode('ascii', errors='replace')}",
        "HEADERS:",
    ]
    lines.extend(f"{name:>25}: {value}" for name, value in headers.items())
    lines.append(f"BODY   :\n{body_text}")
    lines.append(_RULE)

    fields = {
        "method": request.method,
        "url": redact_url(request.url),
        "protocol": protocol,
        "host": request.url.host,
        "headers": headers,
        "body": body_text,
    }
    return "\n".join(lines), fields


def format_response_log(
    status: str,
    elapsed: timedelta,
    headers: httpx.Headers,
    body: Optional[bytes],
) -> Tuple[str, Dict[str, Any]]:
    """Build the response debug block and its structured fields.

    Returns:
        Tuple of (message, extra_fields)
    """
    grouped = _grouped(headers)
    body_text = body_preview(headers.get("Content-Type"), body)

    lines = [
        "",
        "---------------------- RESPONSE LOG -----------------------",
        f"STATUS : {status}",
        f"TIME   : {elapsed}",
        "HEADERS:",
    ]
    lines.extend(f"{name:>30}: {value}" for name, value in grouped.items())
    lines.append(f"BODY   :\n{body_text}")
    lines.append(_RULE)

    fields = {
        "status": status,
        "elapsed_ms": round(elapsed.total_seconds() * 1000, 3),
        "headers": grouped,
        "body": body_text,
    }
    return "\n".join(lines), fields


__all__ = [
    "NO_CONTENT",
    "MASK",
    "masked_headers",
    "body_preview",
    "redact_url",
    "format_request_log",
    "format_response_log",
]
