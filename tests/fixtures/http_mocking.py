# === NAVMAP v1 ===
# {
#   "module": "tests.fixtures.http_mocking",
#   "purpose": "HTTP mocking fixtures for hermetic RestKit testing",
#   "sections": [
#     {"id": "mock-response-builder", "name": "MockResponseBuilder", "anchor": "class-mock-response-builder", "kind": "class"},
#     {"id": "servers", "name": "Mock Servers", "anchor": "servers", "kind": "section"},
#     {"id": "client-factory-fixture", "name": "client_factory", "anchor": "fixture-client-factory", "kind": "fixture"}
#   ]
# }
# === /NAVMAP ===

"""
HTTP mocking fixtures for hermetic network testing.

Provides HTTPX MockTransport handlers that play the part of small test
servers (login, auth, form upload, generic verbs, redirects) so clients can be
exercised end to end without real network access.
"""

from __future__ import annotations

import base64
import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Callable, Generator

import httpx
import pytest

from RestKit import Client

HOST = "http://restkit.test"
TLS_HOST = "https://restkit.test"

JSON_TYPE = "application/json; charset=utf-8"
XML_TYPE = "application/xml"
BEARER_TOKEN = "004DDB79-6801-4587-B976-F093E6AC44FF"

Handler = Callable[[httpx.Request], httpx.Response]


class MockResponseBuilder:
    """Builder for constructing mock HTTP responses with fluent API."""

    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.headers: dict[str, str] = {}

    def with_status(self, code: int) -> MockResponseBuilder:
        self.status_code = code
        return self

    def with_content(self, content: bytes | str) -> MockResponseBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content
        return self

    def with_json(self, data: Any) -> MockResponseBuilder:
        """Set response content as JSON."""
        self.content = json.dumps(data).encode("utf-8")
        self.headers["content-type"] = JSON_TYPE
        return self

    def with_xml(self, document: str) -> MockResponseBuilder:
        self.content = ('<?xml version="1.0" encoding="UTF-8"?>' + document).encode("utf-8")
        self.headers["content-type"] = XML_TYPE
        return self

    def with_header(self, name: str, value: str) -> MockResponseBuilder:
        self.headers[name] = value
        return self

    def build(self) -> httpx.Response:
        """Build the final response object."""
        return httpx.Response(
            status_code=self.status_code,
            content=self.content,
            headers=self.headers,
        )


def _unauthorized(builder: MockResponseBuilder) -> httpx.Response:
    return builder.with_status(401).with_header("Www-Authenticate", "Protected Realm").build()


# --- Mock servers ---


def get_server(request: httpx.Request) -> httpx.Response:
    """Plain-text GET endpoints."""

    if request.method != "GET":
        return httpx.Response(405)
    path = request.url.path
    if path == "/":
        return MockResponseBuilder().with_content("TestGet: text response").build()
    if path == "/mypage":
        return httpx.Response(400)
    if path == "/mypage2":
        return MockResponseBuilder().with_content("TestGet: text response from mypage2").build()
    if path == "/set-timeout-test":
        raise httpx.ReadTimeout("timed out", request=request)
    return httpx.Response(404)


def _read_user(request: httpx.Request) -> dict[str, str] | None:
    content_type = request.headers.get("Content-Type", "")
    body = request.read()
    try:
        if "json" in content_type:
            data = json.loads(body)
            return {str(key).lower(): value for key, value in data.items()}
        root = ET.fromstring(body)
        return {child.tag.lower(): (child.text or "") for child in root}
    except (ValueError, ET.ParseError, AttributeError):
        return None


def _login_json(user: dict[str, str] | None) -> httpx.Response:
    if user is None:
        return MockResponseBuilder(400).with_json(
            {"id": "bad_request", "message": "Unable to read user info"}
        ).build()
    if user.get("username") == "testuser" and user.get("password") == "testpass":
        return MockResponseBuilder().with_json({"id": "success", "message": "login successful"}).build()
    if user.get("username") == "testuser" and user.get("password") == "invalidjson":
        return (
            MockResponseBuilder()
            .with_content('{ "id": "success", "message": "login successful", }')
            .with_header("content-type", JSON_TYPE)
            .build()
        )
    return _unauthorized(
        MockResponseBuilder().with_json({"id": "unauthorized", "message": "Invalid credentials"})
    )


def _login_xml(user: dict[str, str] | None) -> httpx.Response:
    if user is None:
        return MockResponseBuilder(400).with_xml(
            "<AuthError><Id>bad_request</Id><Message>Unable to read user info</Message></AuthError>"
        ).build()
    if user.get("username") == "testuser" and user.get("password") == "testpass":
        return MockResponseBuilder().with_xml(
            "<AuthSuccess><Id>success</Id><Message>login successful</Message></AuthSuccess>"
        ).build()
    if user.get("username") == "testuser" and user.get("password") == "invalidxml":
        return MockResponseBuilder().with_xml(
            "<AuthSuccess><Id>success</Id><Message>login successful</AuthSuccess>"
        ).build()
    return _unauthorized(
        MockResponseBuilder().with_xml(
            "<AuthError><Id>unauthorized</Id><Message>Invalid credentials</Message></AuthError>"
        )
    )


def login_server(request: httpx.Request) -> httpx.Response:
    """POST /login accepting JSON or XML user documents."""

    if request.method != "POST" or request.url.path != "/login":
        return httpx.Response(404)
    content_type = request.headers.get("Content-Type", "").lower()
    if "json" in content_type:
        return _login_json(_read_user(request))
    if "xml" in content_type:
        return _login_xml(_read_user(request))
    return httpx.Response(415)


def auth_server(request: httpx.Request) -> httpx.Response:
    """Bearer-protected GET /profile and basic-auth POST /login."""

    auth = request.headers.get("Authorization", "")
    denied = MockResponseBuilder().with_json({"id": "unauthorized", "message": "Invalid credentials"})
    granted = MockResponseBuilder().with_json({"id": "success", "message": "login successful"})

    if request.method == "GET" and request.url.path == "/profile":
        if not auth.startswith("Bearer "):
            return _unauthorized(denied)
        if auth[7:] in (BEARER_TOKEN, BEARER_TOKEN + "-Request"):
            return granted.build()
        return _unauthorized(denied)

    if request.method == "POST" and request.url.path == "/login":
        try:
            decoded = base64.b64decode(auth[6:]).decode("utf-8")
        except ValueError:
            decoded = ""
        if decoded != "myuser:basicauth":
            return _unauthorized(denied)
        return granted.build()

    return httpx.Response(404)


def form_server(request: httpx.Request) -> httpx.Response:
    """POST /profile (form) and POST /upload (multipart)."""

    if request.method != "POST":
        return httpx.Response(405)
    if request.url.path == "/profile":
        return MockResponseBuilder().with_content("Success").build()
    if request.url.path == "/upload":
        body = request.read().decode("utf-8", errors="replace")
        names = re.findall(r'filename="([^"]+)"', body)
        lines = "".join(f"File: {name}, uploaded as: {name}\n" for name in names)
        return MockResponseBuilder().with_content(lines).build()
    return httpx.Response(404)


def gen_server(request: httpx.Request) -> httpx.Response:
    """PUT, OPTIONS and PATCH endpoints."""

    path = request.url.path
    if request.method == "PUT":
        if path == "/plaintext":
            return MockResponseBuilder().with_content("TestPut: plain text response").build()
        if path == "/json":
            return MockResponseBuilder().with_json({"response": "json response"}).build()
        if path == "/xml":
            return MockResponseBuilder().with_xml("<Response>XML response</Response>").build()
    if request.method == "OPTIONS" and path == "/options":
        return (
            MockResponseBuilder()
            .with_header("Access-Control-Allow-Origin", "localhost")
            .with_header("Access-Control-Allow-Methods", "PUT, PATCH")
            .with_header("Access-Control-Expose-Headers", "x-restkit-id")
            .build()
        )
    if request.method == "PATCH" and path == "/patch":
        return httpx.Response(200)
    return httpx.Response(404)


def redirect_server(request: httpx.Request) -> httpx.Response:
    """Endless ``/redirect-N`` chain and a host-check chain that leaves the host."""

    path = request.url.path
    if request.method != "GET":
        return httpx.Response(405)
    match = re.fullmatch(r"/redirect-host-check-(\d+)", path)
    if match:
        count = int(match.group(1))
        if count == 7:
            return httpx.Response(200)
        if count >= 5:
            return httpx.Response(307, headers={"Location": "http://notallowed.com/go-redirect"})
        return httpx.Response(307, headers={"Location": f"/redirect-host-check-{count + 1}"})
    match = re.fullmatch(r"/redirect-(\d+)", path)
    if match:
        return httpx.Response(307, headers={"Location": f"/redirect-{int(match.group(1)) + 1}"})
    return httpx.Response(200, content=b"landed")


# --- Fixtures ---


@pytest.fixture
def http_mock() -> Generator[Callable[..., MockResponseBuilder], None, None]:
    """Provide a mock HTTP response builder factory."""

    def _mock_response(status_code: int = 200, content: bytes | str = b"") -> MockResponseBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        return MockResponseBuilder(status_code=status_code, content=content)

    yield _mock_response


@pytest.fixture
def client_factory() -> Generator[Callable[..., Client], None, None]:
    """
    Provide a factory for clients wired to a mock server handler.

    Example:
        def test_get(client_factory):
            client = client_factory(get_server)
            response = client.new_request().get(HOST + "/")
            assert response.status == "200 OK"
    """
    clients: list[Client] = []

    def _factory(handler: Handler, **kwargs: Any) -> Client:
        client = Client(transport=httpx.MockTransport(handler), **kwargs)
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        client.close()
