"""Tests for multipart and URL-encoded form construction."""

import pytest

from RestKit.errors import FileAttachmentError
from RestKit.multipart import (
    build_form_body,
    build_multipart_body,
    has_file_fields,
    merge_fields,
    read_file_part,
)


def test_merge_request_overrides_client():
    merged = merge_fields({"city": "Toronto", "Zip": "1"}, {"zip": "2", "name": "n"})
    assert merged == [("city", "Toronto"), ("zip", "2"), ("name", "n")]


def test_merge_takes_first_of_multi_values():
    assert merge_fields(None, {"a": ["x", "y"]}) == [("a", "x")]


def test_has_file_fields():
    assert has_file_fields(["name", "@avatar"])
    assert not has_file_fields(["name"])


def test_form_body_sorts_keys():
    body, content_type = build_form_body([("z", "1"), ("a", "b c")])
    assert body == b"a=b+c&z=1"
    assert content_type == "application/x-www-form-urlencoded"


def test_read_file_part_guesses_mime(tmp_path):
    target = tmp_path / "notes.txt"
    target.write_text("hello")
    name, data, mime = read_file_part("notes", str(target))
    assert (name, data, mime) == ("notes.txt", b"hello", "text/plain")


def test_read_file_part_unknown_extension(tmp_path):
    target = tmp_path / "blob.restkitbin"
    target.write_bytes(b"\x00")
    assert read_file_part("blob", str(target))[2] == "application/octet-stream"


def test_missing_file_raises_attachment_error(tmp_path):
    missing = tmp_path / "absent.png"
    with pytest.raises(FileAttachmentError) as excinfo:
        read_file_part("profile_img", str(missing))
    assert excinfo.value.field == "profile_img"
    assert isinstance(excinfo.value.__cause__, OSError)


def test_multipart_body_contains_fields_and_files(tmp_path):
    target = tmp_path / "text-file.txt"
    target.write_text("uploaded content")
    body, content_type = build_multipart_body(
        [("first_name", "Jeevanandam"), ("@profile", str(target))], boundary="restkitboundary"
    )
    assert content_type == "multipart/form-data; boundary=restkitboundary"
    assert b'name="first_name"' in body
    assert b"Jeevanandam" in body
    assert b'name="profile"; filename="text-file.txt"' in body
    assert b"Content-Type: text/plain" in body
    assert b"uploaded content" in body
    assert body.rstrip().endswith(b"--restkitboundary--")
