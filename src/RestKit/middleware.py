# === NAVMAP v1 ===
# {
#   "module": "RestKit.middleware",
#   "purpose": "Ordered request and response pipeline stages.",
#   "sections": [
#     {"id": "middleware", "name": "Middleware", "anchor": "class-middleware", "kind": "class"},
#     {"id": "functionmiddleware", "name": "FunctionMiddleware", "anchor": "class-functionmiddleware", "kind": "class"},
#     {"id": "middlewarechain", "name": "MiddlewareChain", "anchor": "class-middlewarechain", "kind": "class"},
#     {"id": "request-logger", "name": "request_logger", "anchor": "function-request-logger", "kind": "function"},
#     {"id": "response-logger", "name": "response_logger", "anchor": "function-response-logger", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Ordered request and response pipeline stages.

Every stage, built-in or user supplied, implements the single
``apply(client, subject)`` interface.  Before a request is sent the subject is
the :class:`~RestKit.request.Request`; after the response arrives it is the
:class:`~RestKit.response.Response`.

A chain runs its stages in order and stops at the first failure:
- :class:`~RestKit.errors.RestKitError` propagates unchanged
- anything else is wrapped in :class:`~RestKit.errors.MiddlewareError`
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Union

from .errors import MiddlewareError, RestKitError
from .network.instrumentation import format_request_log, format_response_log

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client
    from .request import Request
    from .response import Response

logger = logging.getLogger(__name__)


# ============================================================================
# Stage Interface
# ============================================================================


class Middleware(ABC):
    """Abstract base for pipeline stages."""

    name: str = "middleware"

    @abstractmethod
    def apply(self, client: "Client", subject: Any) -> None:
        """Inspect or mutate ``subject``; raise to abort the call."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class FunctionMiddleware(Middleware):
    """Adapt a ``func(client, subject)`` callable into a stage."""

    def __init__(self, func: Callable[["Client", Any], Any], name: Optional[str] = None):
        self.func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    def apply(self, client: "Client", subject: Any) -> None:
        self.func(client, subject)


StageLike = Union[Middleware, Callable[["Client", Any], Any]]


def as_middleware(stage: StageLike) -> Middleware:
    """Wrap plain callables in :class:`FunctionMiddleware`."""

    if isinstance(stage, Middleware):
        return stage
    if callable(stage):
        return FunctionMiddleware(stage)
    raise TypeError(f"middleware must be callable, got {type(stage).__name__}")


# ============================================================================
# Chain Runner
# ============================================================================


class MiddlewareChain:
    """Run stages in order against one subject."""

    def __init__(self, stages: Iterable[StageLike]):
        self.stages: List[Middleware] = [as_middleware(stage) for stage in stages]

    def run(self, client: "Client", subject: Any) -> None:
        for stage in self.stages:
            try:
                stage.apply(client, subject)
            except RestKitError:
                raise
            except Exception as exc:
                logger.debug(
                    "middleware stage failed",
                    extra={"stage": stage.name, "error": repr(exc)},
                )
                raise MiddlewareError(stage.name, exc) from exc

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({[stage.name for stage in self.stages]!r})"


# ============================================================================
# Debug Loggers
# ============================================================================


def request_logger(client: "Client", request: "Request") -> None:
    """Emit the request debug block through the client's log sink."""

    if not client.debug or request.raw_request is None:
        return
    message, fields = format_request_log(request.raw_request, request.body_bytes)
    client.logger.info(message, extra={"stage": "request_logger", "extra_fields": fields})


def response_logger(client: "Client", response: "Response") -> None:
    """Emit the response debug block through the client's log sink."""

    if not client.debug:
        return
    message, fields = format_response_log(
        response.status, response.time, response.headers, response.body
    )
    client.logger.info(message, extra={"stage": "response_logger", "extra_fields": fields})


__all__ = [
    "Middleware",
    "FunctionMiddleware",
    "MiddlewareChain",
    "StageLike",
    "as_middleware",
    "request_logger",
    "response_logger",
]
