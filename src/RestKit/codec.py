# === NAVMAP v1 ===
# {
#   "module": "RestKit.codec",
#   "purpose": "Marshal request bodies and decode response bodies into result/error targets",
#   "sections": [
#     {"id": "encode", "name": "Encoding", "anchor": "ENC", "kind": "api"},
#     {"id": "decode", "name": "Decoding", "anchor": "DEC", "kind": "api"},
#     {"id": "targets", "name": "Target Population", "anchor": "TGT", "kind": "helpers"},
#     {"id": "response-stage", "name": "parse_response_body", "anchor": "function-parse-response-body", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Body codec for JSON and XML payloads.

Encoding turns mappings, sequences and records (dataclasses or pydantic
models) into compact JSON, and records into XML.  Decoding reverses the
process into a caller-supplied *target*, which is either a type to build or
an instance to fill in place.  Mapping keys are matched against field names
and aliases without regard to case.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import xml.etree.ElementTree as ET
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, MutableMapping

from pydantic import BaseModel, ValidationError

from .content import BodyEncoding, Payload, is_json_type, is_record, is_structured_type, is_xml_type
from .errors import DecodingError, EncodingError

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client
    from .response import Response

__all__ = [
    "encode_json",
    "encode_xml",
    "encode_payload",
    "decode_json",
    "decode_xml",
    "unmarshal",
    "populate_target",
    "parse_response_body",
]

logger = logging.getLogger(__name__)


# --- Encoding ---


def _record_to_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return dataclasses.asdict(value)


def _json_default(value: Any) -> Any:
    if is_record(value):
        return _record_to_dict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json(value: Any) -> bytes:
    """Serialize ``value`` to compact UTF-8 JSON."""

    try:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"json marshal failed: {exc}") from exc
    return text.encode("utf-8")


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _append_xml_value(parent: ET.Element, tag: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _append_xml_value(parent, tag, item)
        return
    child = ET.SubElement(parent, tag)
    if is_record(value):
        _fill_xml_element(child, _record_fields(value))
    elif isinstance(value, Mapping):
        _fill_xml_element(child, value)
    else:
        child.text = _xml_text(value)


def _fill_xml_element(element: ET.Element, fields: Mapping[str, Any]) -> None:
    for name, value in fields.items():
        _append_xml_value(element, str(name), value)


def _record_fields(record: Any) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        fields: Dict[str, Any] = {}
        for name, info in type(record).model_fields.items():
            fields[info.alias or name] = getattr(record, name)
        return fields
    return {field.name: getattr(record, field.name) for field in dataclasses.fields(record)}


def encode_xml(record: Any) -> bytes:
    """Serialize a record to XML with the class name as the root element."""

    if not is_record(record):
        raise EncodingError(f"xml marshal failed: {type(record).__name__} is not a record")
    root = ET.Element(type(record).__name__)
    try:
        _fill_xml_element(root, _record_fields(record))
        return ET.tostring(root, encoding="unicode").encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"xml marshal failed: {exc}") from exc


def encode_payload(payload: Payload, encoding: BodyEncoding) -> bytes:
    """Render ``payload`` to bytes using the negotiated ``encoding``."""

    if encoding is BodyEncoding.JSON:
        return encode_json(payload.value)
    if encoding is BodyEncoding.XML:
        return encode_xml(payload.value)
    if isinstance(payload.value, str):
        return payload.value.encode("utf-8")
    return bytes(payload.value)


# --- Decoding ---


def decode_json(body: bytes) -> Any:
    return json.loads(body.decode("utf-8-sig") if body else "null")


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    data: Dict[str, Any] = dict(element.attrib)
    repeated: Dict[str, List[Any]] = {}
    for child in children:
        value = _element_to_value(child)
        if child.tag in repeated:
            repeated[child.tag].append(value)
            data[child.tag] = repeated[child.tag]
        elif child.tag in data and child.tag not in element.attrib:
            repeated[child.tag] = [data[child.tag], value]
            data[child.tag] = repeated[child.tag]
        else:
            data[child.tag] = value
    text = (element.text or "").strip()
    if text and not children:
        data["text"] = text
    return data


def decode_xml(body: bytes) -> Dict[str, Any]:
    """Parse an XML document into a mapping of the root element's children."""

    root = ET.fromstring(body)
    value = _element_to_value(root)
    if isinstance(value, dict):
        return value
    return {root.tag: value}


# --- Target population ---


def _field_keys(model: type) -> Dict[str, str]:
    """Map lower-cased names and aliases to the key validation expects."""

    keys: Dict[str, str] = {}
    if issubclass(model, BaseModel):
        for name, info in model.model_fields.items():
            expected = info.alias or name
            keys[name.lower()] = expected
            if info.alias:
                keys[info.alias.lower()] = expected
    else:
        for field in dataclasses.fields(model):
            keys[field.name.lower()] = field.name
    return keys


def _match_fields(model: type, data: Mapping[str, Any]) -> Dict[str, Any]:
    keys = _field_keys(model)
    matched: Dict[str, Any] = {}
    for key, value in data.items():
        target_key = keys.get(str(key).lower())
        if target_key is not None:
            matched[target_key] = value
    return matched


def _attribute_name(model: type, key: str) -> str:
    if issubclass(model, BaseModel):
        for name, info in model.model_fields.items():
            if info.alias == key:
                return name
    return key


def populate_target(target: Any, data: Any) -> Any:
    """Build or fill ``target`` from decoded ``data`` and return the populated object."""

    if isinstance(target, type):
        if issubclass(target, BaseModel):
            if not isinstance(data, Mapping):
                return target.model_validate(data)
            return target.model_validate(_match_fields(target, data))
        if dataclasses.is_dataclass(target):
            if not isinstance(data, Mapping):
                raise TypeError(f"cannot decode {type(data).__name__} into {target.__name__}")
            return target(**_match_fields(target, data))
        if issubclass(target, (dict, list)):
            return target(data)
        raise TypeError(f"unsupported target type {target.__name__}")

    if isinstance(target, MutableMapping):
        if not isinstance(data, Mapping):
            raise TypeError(f"cannot decode {type(data).__name__} into a mapping")
        target.update(data)
        return target
    if isinstance(target, list):
        target[:] = data if isinstance(data, list) else [data]
        return target
    if is_record(target):
        if not isinstance(data, Mapping):
            raise TypeError(f"cannot decode {type(data).__name__} into {type(target).__name__}")
        model = type(target)
        matched = _match_fields(model, data)
        if isinstance(target, BaseModel):
            current = target.model_dump(by_alias=True)
            validated = model.model_validate({**current, **matched})
            for key in matched:
                name = _attribute_name(model, key)
                object.__setattr__(target, name, getattr(validated, name))
        else:
            for key, value in matched.items():
                setattr(target, key, value)
        return target
    raise TypeError(f"unsupported target {type(target).__name__}")


def unmarshal(content_type: str, body: bytes, target: Any) -> Any:
    """Decode ``body`` according to ``content_type`` into ``target``."""

    if is_json_type(content_type):
        data = decode_json(body)
    elif is_xml_type(content_type):
        data = decode_xml(body)
    else:
        raise ValueError(f"unsupported content type {content_type!r}")
    return populate_target(target, data)


def parse_response_body(client: "Client", response: "Response") -> None:
    """Decode structured response bodies into the request's result or error target."""

    content_type = response.headers.get("Content-Type", "")
    if not is_structured_type(content_type):
        return

    request = response.request
    status = response.status_code
    try:
        if 199 < status < 300 and request.result_target is not None:
            request.result = unmarshal(content_type, response.body, request.result_target)
        if status > 399:
            target = request.error_target
            if target is None and client.error_type is not None:
                target = client.error_type
            if target is not None:
                request.error = unmarshal(content_type, response.body, target)
    except (ValueError, TypeError, ET.ParseError, ValidationError) as exc:
        logger.debug(
            "response body decode failed",
            extra={"stage": "parse_response_body", "status": status, "error": str(exc)},
        )
        raise DecodingError(str(exc), response=response) from exc
