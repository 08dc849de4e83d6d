"""Response wrapper returned by every successful call."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

import httpx

if TYPE_CHECKING:  # pragma: no cover
    from .request import Request

__all__ = ["Response"]


class Response:
    """Status, headers and the buffered body of one completed call.

    ``history`` lists ``(url, status_code)`` for every response received while
    following redirects, the final one included.
    """

    def __init__(
        self,
        request: "Request",
        raw_response: httpx.Response,
        *,
        received_at: Optional[datetime] = None,
        history: Optional[List[Tuple[str, int]]] = None,
    ) -> None:
        self.request = request
        self.raw_response = raw_response
        self.body: bytes = raw_response.content
        self.received_at = received_at or datetime.now()
        self.history = list(history or [])

    @property
    def status_code(self) -> int:
        return self.raw_response.status_code

    @property
    def status(self) -> str:
        """Status line such as ``"200 OK"``."""
        reason = self.raw_response.reason_phrase
        return f"{self.status_code} {reason}" if reason else str(self.status_code)

    @property
    def headers(self) -> httpx.Headers:
        return self.raw_response.headers

    @property
    def cookies(self) -> httpx.Cookies:
        return self.raw_response.cookies

    @property
    def text(self) -> str:
        """Body decoded as text with surrounding whitespace removed."""
        return self.body.decode(self.raw_response.encoding or "utf-8", errors="replace").strip()

    @property
    def time(self) -> timedelta:
        sent_at = self.request.sent_at
        if sent_at is None:
            return timedelta(0)
        return self.received_at - sent_at

    @property
    def is_success(self) -> bool:
        return 199 < self.status_code < 300

    @property
    def is_error(self) -> bool:
        return self.status_code > 399

    def result(self) -> Any:
        return self.request.result

    def error(self) -> Any:
        return self.request.error

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<Response [{self.status}]>"
