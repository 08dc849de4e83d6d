# === NAVMAP v1 ===
# {
#   "module": "RestKit.content",
#   "purpose": "Classify request bodies and negotiate how they are written to the wire",
#   "sections": [
#     {"id": "mime", "name": "MIME Type Checks", "anchor": "MIM", "kind": "helpers"},
#     {"id": "sniff", "name": "Byte Sniffing", "anchor": "SNF", "kind": "helpers"},
#     {"id": "payload", "name": "Payload Variant", "anchor": "PAY", "kind": "api"},
#     {"id": "negotiate", "name": "Body Negotiation", "anchor": "NEG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Content negotiation for request and response bodies.

Bodies are classified once, when the caller sets them, into a closed
:class:`Payload` variant.  At assembly time :func:`negotiate_body_encoding`
pairs that variant with the declared ``Content-Type`` to choose between JSON
marshalling, XML marshalling, and writing the bytes as they are.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel

from .errors import UnsupportedBodyTypeError
from .network.policy import (
    JSON_CONTENT_TYPE,
    OCTET_STREAM_CONTENT_TYPE,
    PLAIN_TEXT_CONTENT_TYPE,
)

__all__ = [
    "PayloadKind",
    "Payload",
    "BodyEncoding",
    "media_type",
    "is_json_type",
    "is_xml_type",
    "is_structured_type",
    "is_record",
    "sniff_content_type",
    "detect_content_type",
    "classify_body",
    "negotiate_body_encoding",
]

# --- MIME type checks ---

_JSON_PATTERN = re.compile(r"^(application|text)/([\w.\-]+\+)?json$", re.IGNORECASE)
_XML_PATTERN = re.compile(r"^(application|text)/([\w.\-]+\+)?xml$", re.IGNORECASE)


def media_type(content_type: Optional[str]) -> str:
    """Return the lower-cased ``type/subtype`` part of a Content-Type value."""

    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_type(content_type: Optional[str]) -> bool:
    """Return ``True`` for ``application/json`` and its ``+json`` aliases."""

    return bool(_JSON_PATTERN.match(media_type(content_type)))


def is_xml_type(content_type: Optional[str]) -> bool:
    """Return ``True`` for ``application/xml``, ``text/xml`` and ``+xml`` aliases."""

    return bool(_XML_PATTERN.match(media_type(content_type)))


def is_structured_type(content_type: Optional[str]) -> bool:
    return is_json_type(content_type) or is_xml_type(content_type)


# --- Byte sniffing ---

_SIGNATURES: Sequence[tuple] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"OggS\x00", "application/ogg"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", PLAIN_TEXT_CONTENT_TYPE),
)
_HTML_PREFIXES = (b"<!doctype html", b"<html", b"<head", b"<body", b"<script", b"<!--")
_SNIFF_LEN = 512
_BINARY_BYTES = frozenset(list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20)))


def sniff_content_type(data: bytes) -> str:
    """Guess a MIME type from the leading bytes of ``data``."""

    head = bytes(data[:_SNIFF_LEN])
    for signature, mime in _SIGNATURES:
        if head.startswith(signature):
            return mime

    stripped = head.lstrip(b"\t\n\x0c\r ")
    lowered = stripped.lower()
    if lowered.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    if any(lowered.startswith(prefix) for prefix in _HTML_PREFIXES):
        return "text/html; charset=utf-8"

    if any(byte in _BINARY_BYTES for byte in head):
        return OCTET_STREAM_CONTENT_TYPE
    return PLAIN_TEXT_CONTENT_TYPE


# --- Payload variant ---


class PayloadKind(str, Enum):
    """Closed set of body shapes a request can carry."""

    RAW = "raw"
    TEXT = "text"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    RECORD = "record"


@dataclass(frozen=True)
class Payload:
    """A request body tagged with its shape."""

    kind: PayloadKind
    value: Any

    @property
    def is_structured(self) -> bool:
        return self.kind in (PayloadKind.MAPPING, PayloadKind.SEQUENCE, PayloadKind.RECORD)


def is_record(value: Any) -> bool:
    """Return ``True`` for dataclass instances and pydantic model instances."""

    if isinstance(value, BaseModel):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def classify_body(value: Any) -> Optional[Payload]:
    """Wrap ``value`` in a :class:`Payload` or reject it.

    Raises:
        UnsupportedBodyTypeError: If ``value`` matches none of the known shapes.
    """

    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Payload(PayloadKind.RAW, bytes(value))
    if isinstance(value, str):
        return Payload(PayloadKind.TEXT, value)
    if is_record(value):
        return Payload(PayloadKind.RECORD, value)
    if isinstance(value, Mapping):
        return Payload(PayloadKind.MAPPING, value)
    if isinstance(value, (list, tuple)):
        return Payload(PayloadKind.SEQUENCE, value)
    raise UnsupportedBodyTypeError()


def detect_content_type(payload: Payload) -> str:
    """Return the Content-Type to declare when the caller set none."""

    if payload.is_structured:
        return JSON_CONTENT_TYPE
    if payload.kind is PayloadKind.TEXT:
        return PLAIN_TEXT_CONTENT_TYPE
    return sniff_content_type(payload.value)


# --- Body negotiation ---


class BodyEncoding(str, Enum):
    JSON = "json"
    XML = "xml"
    VERBATIM = "verbatim"


def negotiate_body_encoding(content_type: Optional[str], payload: Payload) -> BodyEncoding:
    """Decide how ``payload`` is written for the declared ``content_type``.

    JSON content types accept mappings, sequences and records.  XML content
    types accept records only.  Text and raw bytes are always written verbatim.

    Raises:
        UnsupportedBodyTypeError: For any other pairing.
    """

    if payload.kind in (PayloadKind.TEXT, PayloadKind.RAW):
        return BodyEncoding.VERBATIM
    if is_json_type(content_type) and payload.is_structured:
        return BodyEncoding.JSON
    if is_xml_type(content_type) and payload.kind is PayloadKind.RECORD:
        return BodyEncoding.XML
    raise UnsupportedBodyTypeError()
