"""Form body parsing: URL-encoded (stdlib) and multipart (python-multipart).

``FormData`` keeps string fields by name and every uploaded file in the
order the client sent them, so two files posted under the same field
name are both visible through ``FormData.uploads``.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

import anyio
from python_multipart.multipart import MultipartParser, parse_options_header


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file, held in memory."""

    field_name: str
    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    async def read(self) -> bytes:
        return self.content

    async def save(self, path: str | Path) -> None:
        """Write the content to *path* without blocking the event loop."""
        await anyio.Path(path).write_bytes(self.content)


class FormData(Mapping[str, str]):
    """Parsed form fields plus uploaded files.

    ``form["name"]`` returns the first value of a text field;
    ``form.files["avatar"]`` the first file posted under ``avatar``;
    ``form.uploads`` every file in submission order.
    """

    __slots__ = ("_data", "_uploads")

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        uploads: tuple[UploadFile, ...] = (),
    ) -> None:
        object.__setattr__(self, "_data", data or {})
        object.__setattr__(self, "_uploads", uploads)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData(fields={list(self._data)!r}, uploads={len(self._uploads)})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))

    @property
    def uploads(self) -> tuple[UploadFile, ...]:
        """All uploaded files, in submission order."""
        return self._uploads

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """First uploaded file per field name."""
        first: dict[str, UploadFile] = {}
        for upload in self._uploads:
            first.setdefault(upload.field_name, upload)
        return first


async def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body according to *content_type*.

    Raises:
        ValueError: For non-form content types or a multipart body
            without a boundary.
    """
    media_type = content_type.split(";")[0].strip().lower()

    if media_type == "application/x-www-form-urlencoded":
        return FormData(parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True))

    if media_type == "multipart/form-data":
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    uploads: list[UploadFile] = []

    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    content = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        content.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        content.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(
            headers.get("content-disposition", "").encode("latin-1")
        )
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        # A file input left empty arrives as filename="" and is a plain field
        if filename:
            uploads.append(
                UploadFile(
                    field_name=field_name,
                    filename=filename.decode("utf-8"),
                    content_type=headers.get("content-type", "application/octet-stream"),
                    content=bytes(content),
                )
            )
        else:
            data.setdefault(field_name, []).append(content.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()
    return FormData(data, tuple(uploads))
