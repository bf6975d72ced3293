"""Tests for form parsing: URL-encoded and multipart."""

import pytest

from okapi.http.forms import FormData, UploadFile, parse_form_data
from okapi.testing import encode_multipart

# ---------------------------------------------------------------------------
# FormData unit tests
# ---------------------------------------------------------------------------


class TestFormData:
    def test_getitem_returns_first(self) -> None:
        form = FormData({"color": ["red", "blue"]})
        assert form["color"] == "red"

    def test_get_with_default(self) -> None:
        form = FormData({})
        assert form.get("missing") is None
        assert form.get("missing", "fallback") == "fallback"

    def test_get_list(self) -> None:
        form = FormData({"tags": ["python", "web"]})
        assert form.get_list("tags") == ["python", "web"]
        assert form.get_list("missing") == []

    def test_files_keeps_first_per_field(self) -> None:
        a = UploadFile("doc", "a.txt", "text/plain", b"a")
        b = UploadFile("doc", "b.txt", "text/plain", b"b")
        form = FormData(uploads=(a, b))
        assert form.files["doc"] is a
        assert form.uploads == (a, b)


class TestUploadFile:
    async def test_read_and_size(self) -> None:
        upload = UploadFile("f", "x.bin", "application/octet-stream", b"\x00\x01")
        assert upload.size == 2
        assert await upload.read() == b"\x00\x01"

    async def test_save(self, tmp_path) -> None:
        upload = UploadFile("f", "x.txt", "text/plain", b"hello")
        target = tmp_path / "saved.txt"
        await upload.save(target)
        assert target.read_bytes() == b"hello"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestUrlEncoded:
    async def test_fields(self) -> None:
        form = await parse_form_data(b"name=John&tag=a&tag=b", "application/x-www-form-urlencoded")
        assert form["name"] == "John"
        assert form.get_list("tag") == ["a", "b"]
        assert form.uploads == ()

    async def test_blank_values_kept(self) -> None:
        form = await parse_form_data(b"empty=", "application/x-www-form-urlencoded")
        assert form["empty"] == ""

    async def test_invalid_utf8_is_replaced(self) -> None:
        form = await parse_form_data(b"name=\xff\xfeok", "application/x-www-form-urlencoded")
        assert form["name"] == "\ufffd\ufffdok"


class TestMultipart:
    async def test_fields_and_files(self) -> None:
        body, content_type = encode_multipart(
            {"title": "report"},
            [("file", "a.txt", b"alpha", "text/plain")],
        )
        form = await parse_form_data(body, content_type)
        assert form["title"] == "report"
        assert len(form.uploads) == 1
        upload = form.uploads[0]
        assert upload.field_name == "file"
        assert upload.filename == "a.txt"
        assert upload.content_type == "text/plain"
        assert upload.content == b"alpha"

    async def test_all_files_in_submission_order(self) -> None:
        body, content_type = encode_multipart(
            files=[
                ("file", "first.txt", b"1"),
                ("file", "second.txt", b"2"),
                ("other", "third.txt", b"3"),
            ]
        )
        form = await parse_form_data(body, content_type)
        assert [u.filename for u in form.uploads] == ["first.txt", "second.txt", "third.txt"]

    async def test_empty_filename_is_a_field(self) -> None:
        body, content_type = encode_multipart(
            files=[("attachment", "", b""), ("file", "a.txt", b"alpha")],
        )
        form = await parse_form_data(body, content_type)
        assert form["attachment"] == ""
        assert [u.filename for u in form.uploads] == ["a.txt"]
        assert "attachment" not in form.files

    async def test_missing_boundary(self) -> None:
        with pytest.raises(ValueError, match="boundary"):
            await parse_form_data(b"", "multipart/form-data")


class TestUnsupported:
    async def test_json_is_not_a_form(self) -> None:
        with pytest.raises(ValueError, match="Unsupported form content type"):
            await parse_form_data(b"{}", "application/json")

    async def test_empty_content_type(self) -> None:
        with pytest.raises(ValueError):
            await parse_form_data(b"", "")
