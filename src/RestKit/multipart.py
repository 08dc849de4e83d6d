"""Multipart and URL-encoded form bodies.

Form fields arrive from two layers, the client defaults and the per-call
request.  Keys prefixed with ``@`` name file attachments whose value is a
filesystem path.
"""

from __future__ import annotations

import mimetypes
import os
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from urllib3 import encode_multipart_formdata

from .errors import FileAttachmentError
from .network.policy import FORM_CONTENT_TYPE, OCTET_STREAM_CONTENT_TYPE

__all__ = [
    "FILE_PREFIX",
    "FilePart",
    "merge_fields",
    "has_file_fields",
    "read_file_part",
    "build_multipart_body",
    "build_form_body",
]

FILE_PREFIX = "@"

#: ``(filename, data, mime_type)`` as accepted by :func:`urllib3.encode_multipart_formdata`
FilePart = Tuple[str, bytes, str]


def _field_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    return value if isinstance(value, str) else str(value)


def merge_fields(
    client_fields: Optional[Mapping[str, Any]],
    request_fields: Optional[Mapping[str, Any]],
) -> List[Tuple[str, str]]:
    """Merge form fields with request values overriding client values.

    Client-only keys keep their order and come first, followed by every
    request key in insertion order.  Keys are compared case-insensitively.
    """

    request_fields = request_fields or {}
    overridden = {str(key).lower() for key in request_fields}
    merged: List[Tuple[str, str]] = [
        (key, _field_value(value))
        for key, value in (client_fields or {}).items()
        if str(key).lower() not in overridden
    ]
    merged.extend((key, _field_value(value)) for key, value in request_fields.items())
    return merged


def has_file_fields(fields: Iterable[str]) -> bool:
    return any(str(key).startswith(FILE_PREFIX) for key in fields)


def read_file_part(field: str, path: str) -> FilePart:
    """Read ``path`` into a multipart file part for ``field``."""

    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise FileAttachmentError(field, path, exc.strerror or str(exc)) from exc
    mime_type, _ = mimetypes.guess_type(path)
    return os.path.basename(path), data, mime_type or OCTET_STREAM_CONTENT_TYPE


def build_multipart_body(
    fields: Iterable[Tuple[str, str]], boundary: Optional[str] = None
) -> Tuple[bytes, str]:
    """Encode ``fields`` as ``multipart/form-data``.

    Returns:
        Tuple[bytes, str]: The finalized body and its Content-Type, boundary included.
    """

    parts: List[Tuple[str, Union[str, FilePart]]] = []
    for key, value in fields:
        if key.startswith(FILE_PREFIX):
            name = key[len(FILE_PREFIX):]
            parts.append((name, read_file_part(name, value)))
        else:
            parts.append((key, value))
    return encode_multipart_formdata(parts, boundary=boundary)


def build_form_body(fields: Iterable[Tuple[str, str]]) -> Tuple[bytes, str]:
    """Encode ``fields`` as ``application/x-www-form-urlencoded`` with keys sorted."""

    ordered = sorted(dict(fields).items())
    return urlencode(ordered).encode("ascii"), FORM_CONTENT_TYPE
