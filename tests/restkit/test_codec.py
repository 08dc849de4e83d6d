"""Tests for the JSON/XML body codec and target population."""

import json
from dataclasses import dataclass, field
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from RestKit.codec import (
    decode_xml,
    encode_json,
    encode_xml,
    populate_target,
    unmarshal,
)
from RestKit.errors import EncodingError


@dataclass
class AuthSuccess:
    id: str = ""
    message: str = ""


@dataclass
class Order:
    id: int
    tags: List[str] = field(default_factory=list)
    note: Optional[str] = None


class Account(BaseModel):
    account_id: str = Field(alias="accountId")
    active: bool = False


class TestEncoding:
    """Marshalling bodies to bytes."""

    def test_json_is_compact(self):
        assert encode_json({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}'

    def test_json_handles_nested_records(self):
        body = encode_json({"order": Order(1, ["x"])})
        assert json.loads(body) == {"order": {"id": 1, "tags": ["x"], "note": None}}

    def test_json_uses_pydantic_aliases(self):
        assert json.loads(encode_json(Account(accountId="a1"))) == {"accountId": "a1", "active": False}

    def test_json_failure_raises_encoding_error(self):
        with pytest.raises(EncodingError):
            encode_json({"bad": object()})

    def test_xml_root_is_class_name(self):
        body = encode_xml(AuthSuccess("success", "ok"))
        assert body == b"<AuthSuccess><id>success</id><message>ok</message></AuthSuccess>"

    def test_xml_repeats_list_fields_and_skips_none(self):
        body = encode_xml(Order(3, ["a", "b"]))
        assert body == b"<Order><id>3</id><tags>a</tags><tags>b</tags></Order>"

    def test_xml_renders_booleans_lowercase(self):
        assert b"<active>true</active>" in encode_xml(Account(accountId="x", active=True))

    def test_xml_rejects_mappings(self):
        with pytest.raises(EncodingError):
            encode_xml({"a": 1})


class TestDecoding:
    """Decoding into types and instances."""

    def test_json_into_dataclass_type_matches_case_insensitively(self):
        result = unmarshal("application/json", b'{"ID": "success", "Message": "ok"}', AuthSuccess)
        assert result == AuthSuccess("success", "ok")

    def test_xml_into_dataclass_type(self):
        body = (
            b'<?xml version="1.0" encoding="UTF-8"?>'
            b"<AuthSuccess><Id>success</Id><Message>login successful</Message></AuthSuccess>"
        )
        result = unmarshal("application/xml", body, AuthSuccess)
        assert result == AuthSuccess("success", "login successful")

    def test_json_into_pydantic_type_by_alias_or_name(self):
        by_alias = unmarshal("application/json", b'{"accountid": "a", "active": true}', Account)
        by_name = unmarshal("application/json", b'{"account_id": "b"}', Account)
        assert by_alias.account_id == "a" and by_alias.active is True
        assert by_name.account_id == "b"

    def test_instance_is_filled_in_place(self):
        target = AuthSuccess()
        returned = unmarshal("application/json", b'{"id": "x"}', target)
        assert returned is target
        assert target.id == "x"
        assert target.message == ""

    def test_pydantic_instance_is_filled_in_place(self):
        target = Account(accountId="old")
        populate_target(target, {"active": True})
        assert target.active is True
        assert target.account_id == "old"

    def test_dict_type_and_instance(self):
        assert unmarshal("application/json", b'{"a": 1}', dict) == {"a": 1}
        holder = {"keep": True}
        unmarshal("application/json", b'{"a": 1}', holder)
        assert holder == {"keep": True, "a": 1}

    def test_unknown_keys_are_ignored(self):
        result = unmarshal("application/json", b'{"id": "1", "extra": 2}', AuthSuccess)
        assert result.id == "1"

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            unmarshal("application/json", b'{ "id": "success", }', AuthSuccess)

    def test_opaque_content_type_is_rejected(self):
        with pytest.raises(ValueError):
            unmarshal("text/plain", b"x", dict)


class TestXmlToMapping:
    """ElementTree conversion into nested mappings."""

    def test_repeated_tags_become_lists(self):
        data = decode_xml(b"<Order><id>1</id><tags>a</tags><tags>b</tags><tags>c</tags></Order>")
        assert data == {"id": "1", "tags": ["a", "b", "c"]}

    def test_nested_elements(self):
        data = decode_xml(b"<R><user><name>n</name></user></R>")
        assert data == {"user": {"name": "n"}}

    def test_attributes_are_kept(self):
        data = decode_xml(b'<R version="2"><id>1</id></R>')
        assert data == {"version": "2", "id": "1"}

    def test_scalar_root(self):
        assert decode_xml(b"<Response>XML response</Response>") == {"Response": "XML response"}
