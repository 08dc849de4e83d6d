"""Testing utilities for exercising clients without network access.

``use_mock_transport`` swaps a client's transport for an
:class:`httpx.MockTransport` for the duration of a ``with`` block and records
every request that reaches it.  ``ResponseSpec`` describes canned responses.
"""

from __future__ import annotations

import contextlib
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Union

import httpx

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client

__all__ = [
    "ResponseSpec",
    "RequestRecord",
    "RecordingHandler",
    "use_mock_transport",
]

Handler = Callable[[httpx.Request], httpx.Response]


@dataclass
class ResponseSpec:
    """HTTP response definition served by a mock transport."""

    status: int = 200
    body: Union[bytes, str, Mapping[str, Any], List[Any]] = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def serialise_body(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")

    def to_response(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            self.status,
            headers=dict(self.headers),
            content=self.serialise_body(),
            request=request,
        )


@dataclass
class RequestRecord:
    """Captured HTTP request as seen by the mock transport."""

    method: str
    url: str
    path: str
    headers: Dict[str, str]
    body: bytes

    @classmethod
    def from_request(cls, request: httpx.Request) -> "RequestRecord":
        return cls(
            method=request.method,
            url=str(request.url),
            path=request.url.path,
            headers=dict(request.headers),
            body=request.read(),
        )


class RecordingHandler:
    """Wrap a handler (or a fixed :class:`ResponseSpec`) and record each request."""

    def __init__(self, handler: Union[Handler, ResponseSpec]):
        self.handler = handler
        self.requests: List[RequestRecord] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(RequestRecord.from_request(request))
        if isinstance(self.handler, ResponseSpec):
            return self.handler.to_response(request)
        return self.handler(request)


@contextlib.contextmanager
def use_mock_transport(
    client: "Client", handler: Union[Handler, ResponseSpec]
) -> Iterator[RecordingHandler]:
    """Temporarily route ``client`` through an :class:`httpx.MockTransport`.

    Yields:
        RecordingHandler: exposes ``requests`` captured during the block.
    """

    recorder = RecordingHandler(handler)
    previous = client.transport.transport
    client.set_transport(httpx.MockTransport(recorder))
    try:
        yield recorder
    finally:
        client.set_transport(previous)
