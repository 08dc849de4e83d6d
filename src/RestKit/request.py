"""Per-call request state and its fluent setters."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

import httpx
from requests.structures import CaseInsensitiveDict

from .content import Payload, classify_body
from .multipart import FILE_PREFIX, has_file_fields

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client
    from .response import Response

__all__ = ["Request"]


class Request:
    """One HTTP call under construction.

    Created with :meth:`RestKit.client.Client.new_request`.  Setters return the
    request so calls can be chained, and a verb method such as :meth:`get`
    executes it.

    Attributes:
        client: Owning client whose defaults are merged in at execution.
        method: HTTP verb, upper-cased.
        url: Absolute URL, or a path joined to the client's host URL.
        headers: Per-call headers; after assembly the wire request's headers.
        query_params: Per-call query parameters.
        form_data: Per-call form fields; ``@`` keys name file attachments.
        payload: Classified body, if any.
        result_target / error_target: Type or instance to decode into.
        result / error: Decoded objects after the call.
        body_bytes: Serialized body once assembled.
        raw_request: The assembled :class:`httpx.Request`.
        sent_at: When the request was handed to the transport.
    """

    def __init__(self, client: "Client") -> None:
        self.client = client
        self.method = "GET"
        self.url = ""
        self.headers = httpx.Headers()
        self.query_params: CaseInsensitiveDict = CaseInsensitiveDict()
        self.form_data: CaseInsensitiveDict = CaseInsensitiveDict()
        self.payload: Optional[Payload] = None
        self.basic_auth: Optional[Tuple[str, str]] = None
        self.token = ""
        self.result_target: Any = None
        self.error_target: Any = None
        self.result: Any = None
        self.error: Any = None
        self.is_multipart = False
        self.is_form_data = False
        self.content_length = False
        self.body_bytes: Optional[bytes] = None
        self.raw_request: Optional[httpx.Request] = None
        self.sent_at: Optional[datetime] = None

    @property
    def body(self) -> Any:
        return None if self.payload is None else self.payload.value

    # --- headers and query ---

    def set_header(self, name: str, value: str) -> "Request":
        self.headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "Request":
        for name, value in headers.items():
            self.headers[name] = value
        return self

    def set_query_param(self, name: str, value: Any) -> "Request":
        self.query_params[name] = value
        return self

    def set_query_params(self, params: Mapping[str, Any]) -> "Request":
        for name, value in params.items():
            self.query_params[name] = value
        return self

    def set_query_string(self, query: str) -> "Request":
        """Add parameters parsed from a raw query string.

        Fields without ``=`` get an empty value.  A string that is not valid
        percent-encoded UTF-8 is logged and ignored.
        """
        try:
            pairs = parse_qsl(query, keep_blank_values=True, errors="strict")
        except ValueError as exc:
            self.client.logger.error(
                "unable to parse query string %r: %s",
                query,
                exc,
                extra={"stage": "set_query_string"},
            )
            return self
        grouped: dict = {}
        for name, value in pairs:
            grouped.setdefault(name, []).append(value)
        for name, values in grouped.items():
            self.query_params[name] = values[0] if len(values) == 1 else values
        return self

    # --- body ---

    def set_form_data(self, data: Mapping[str, Any]) -> "Request":
        """Add form fields; ``@``-prefixed keys are file paths sent as multipart."""
        for name, value in data.items():
            self.form_data[name] = value
        if has_file_fields(data):
            self.is_multipart = True
        return self

    @property
    def has_attachments(self) -> bool:
        """True when the call or its client carries file parts, so it goes out as multipart."""
        return (
            self.is_multipart
            or has_file_fields(self.form_data)
            or has_file_fields(self.client.form_data)
        )

    def set_file(self, param: str, file_path: str) -> "Request":
        """Attach the file at ``file_path`` as multipart field ``param``."""
        self.form_data[FILE_PREFIX + param] = file_path
        self.is_multipart = True
        return self

    def set_files(self, files: Mapping[str, str]) -> "Request":
        for param, file_path in files.items():
            self.set_file(param, file_path)
        return self

    def set_body(self, body: Any) -> "Request":
        """Set the body: bytes, str, a mapping, a sequence, or a dataclass/pydantic record.

        Raises:
            UnsupportedBodyTypeError: For any other value.
        """
        self.payload = classify_body(body)
        return self

    def set_content_length(self, enabled: bool = True) -> "Request":
        self.content_length = enabled
        return self

    # --- decoding targets ---

    def set_result(self, target: Any) -> "Request":
        self.result_target = target
        return self

    def set_error(self, target: Any) -> "Request":
        self.error_target = target
        return self

    # --- auth ---

    def set_basic_auth(self, username: str, password: str) -> "Request":
        self.basic_auth = (username, password)
        return self

    def set_auth_token(self, token: str) -> "Request":
        self.token = token
        return self

    # --- verbs ---

    def get(self, url: str) -> "Response":
        return self.execute("GET", url)

    def post(self, url: str) -> "Response":
        return self.execute("POST", url)

    def put(self, url: str) -> "Response":
        return self.execute("PUT", url)

    def delete(self, url: str) -> "Response":
        return self.execute("DELETE", url)

    def patch(self, url: str) -> "Response":
        return self.execute("PATCH", url)

    def head(self, url: str) -> "Response":
        return self.execute("HEAD", url)

    def options(self, url: str) -> "Response":
        return self.execute("OPTIONS", url)

    def execute(self, method: str, url: str) -> "Response":
        """Run the call through the client's pipeline and transport."""
        self.method = method.upper()
        self.url = url
        return self.client.execute(self)

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url!r}>"
