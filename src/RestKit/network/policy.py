# === NAVMAP v1 ===
# {
#   "module": "RestKit.network.policy",
#   "purpose": "HTTP policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP policy constants and defaults.

Defines the verb sets, content types, timeout budget, redirect limits, and
user-agent construction shared by the request assembler, the transport, and
the redirect engine.
"""

from importlib import metadata as importlib_metadata

import httpx

try:  # pragma: no cover - metadata may be unavailable during development
    PACKAGE_VERSION = importlib_metadata.version("RestKit")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - local source tree
    PACKAGE_VERSION = "0.0.0"


# ============================================================================
# Verb Sets
# ============================================================================

#: Verbs whose requests carry a body; all others have Content-Type stripped
PAYLOAD_METHODS = frozenset({"POST", "PUT", "PATCH"})

#: Verbs allowed to carry multipart file attachments
MULTIPART_METHODS = frozenset({"POST", "PUT", "PATCH"})


# ============================================================================
# Content Types
# ============================================================================

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
PLAIN_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"


# ============================================================================
# Timeout Budget (seconds)
# ============================================================================

#: Whole-request timeout handed to httpx for connect, read, write, and pool
HTTP_TIMEOUT = 30.0


# ============================================================================
# Redirects
# ============================================================================

#: Redirect hops followed in "http" mode before the call is stopped
MAX_REDIRECT_HOPS = 10

#: Status codes treated as redirects by the send loop
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})


# ============================================================================
# User-Agent Construction
# ============================================================================

#: User-Agent template format
#: Example: "RestKit/0.1.0 (httpx/0.27.0)"
USER_AGENT_TEMPLATE = "RestKit/{version} (httpx/{httpx_version})"

#: Default User-Agent value injected when the caller sets none
DEFAULT_USER_AGENT = USER_AGENT_TEMPLATE.format(
    version=PACKAGE_VERSION, httpx_version=httpx.__version__
)


# ============================================================================
# Security & Compliance
# ============================================================================

#: Verify TLS certificates with the certifi bundle unless told otherwise
TLS_VERIFY_ENABLED = True

#: Header values replaced with a mask in debug logs
MASKED_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie"})


__all__ = [
    "PACKAGE_VERSION",
    # Verbs
    "PAYLOAD_METHODS",
    "MULTIPART_METHODS",
    # Content types
    "JSON_CONTENT_TYPE",
    "FORM_CONTENT_TYPE",
    "PLAIN_TEXT_CONTENT_TYPE",
    "OCTET_STREAM_CONTENT_TYPE",
    # Timeouts
    "HTTP_TIMEOUT",
    # Redirects
    "MAX_REDIRECT_HOPS",
    "REDIRECT_STATUS_CODES",
    # User-Agent
    "USER_AGENT_TEMPLATE",
    "DEFAULT_USER_AGENT",
    # Security
    "TLS_VERIFY_ENABLED",
    "MASKED_HEADERS",
]
