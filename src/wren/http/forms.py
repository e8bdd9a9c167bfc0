"""Form body parsing — URL-encoded and multipart.

URL-encoded bodies use stdlib ``urllib.parse`` through ``Values.parse``.
Multipart bodies go through ``python-multipart``'s callback parser; every
uploaded file is kept in memory as an ``UploadFile`` and grouped by field
name, so ``upload[]`` fields with several files stay together.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike

import anyio
from python_multipart.multipart import MultipartParser, parse_options_header

from wren.http.values import Values


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    Immutable metadata with the content held in memory, which suits the
    small uploads this toolkit is aimed at.
    """

    filename: str
    content_type: str
    size: int
    _content: bytes

    async def read(self) -> bytes:
        """Return the file content as bytes."""
        return self._content

    async def save(self, path: str | PathLike[str]) -> None:
        """Write the file content to *path*. Parent directories must exist."""
        await anyio.Path(path).write_bytes(self._content)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Values):
    """Parsed form body: string fields plus uploaded files.

    String fields behave exactly like query parameters (``get``,
    ``get_list``, ``get_map``). Files are available per field name::

        form = await ctx.multipart_form()
        for upload in form.files.get("upload[]", []):
            ...
    """

    __slots__ = ("_files",)

    def __init__(
        self,
        data: Mapping[str, list[str]] | None = None,
        files: Mapping[str, list[UploadFile]] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", {k: list(v) for k, v in (files or {}).items()})

    @property
    def files(self) -> Mapping[str, list[UploadFile]]:
        """Uploaded files by field name."""
        return self._files

    def file(self, key: str) -> UploadFile | None:
        """Return the first file uploaded under *key*, or ``None``."""
        uploads = self._files.get(key)
        return uploads[0] if uploads else None

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"FormData({{{items}}}, files={sorted(self._files)!r})"


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body into ``FormData``.

    Supports ``application/x-www-form-urlencoded`` and
    ``multipart/form-data``.

    Raises:
        ValueError: If the content type is not a form encoding, or a
            multipart body has no boundary.
    """
    media_type = content_type.lower().split(";")[0].strip()

    if media_type == "application/x-www-form-urlencoded":
        fields = Values.parse(body.decode("utf-8"))
        return FormData({key: fields.get_list(key) for key in fields})

    if media_type == "multipart/form-data":
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


class _PartCollector:
    """Callback sink for ``MultipartParser``.

    Header names and values arrive as byte slices; they are joined per
    header and interpreted once the header line ends.
    """

    __slots__ = (
        "content_type",
        "data",
        "field_name",
        "filename",
        "files",
        "header_field",
        "header_value",
        "payload",
    )

    def __init__(self) -> None:
        self.data: dict[str, list[str]] = {}
        self.files: dict[str, list[UploadFile]] = {}
        self._reset_part()

    def _reset_part(self) -> None:
        self.field_name: str | None = None
        self.filename: str | None = None
        self.content_type = "application/octet-stream"
        self.payload = bytearray()
        self.header_field = bytearray()
        self.header_value = bytearray()

    def on_part_begin(self) -> None:
        self._reset_part()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self.header_field.extend(data[start:end])

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self.header_value.extend(data[start:end])

    def on_header_end(self) -> None:
        name = self.header_field.decode("latin-1").strip().lower()
        value = bytes(self.header_value)
        self.header_field = bytearray()
        self.header_value = bytearray()

        if name == "content-disposition":
            _, params = parse_options_header(value)
            if b"name" in params:
                self.field_name = params[b"name"].decode("utf-8")
            if b"filename" in params:
                self.filename = params[b"filename"].decode("utf-8")
        elif name == "content-type":
            self.content_type = value.decode("latin-1").strip()

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self.payload.extend(data[start:end])

    def on_part_end(self) -> None:
        if self.field_name is None:
            return
        if self.filename is None:
            value = self.payload.decode("utf-8", errors="replace")
            self.data.setdefault(self.field_name, []).append(value)
            return
        content = bytes(self.payload)
        upload = UploadFile(
            filename=self.filename,
            content_type=self.content_type,
            size=len(content),
            _content=content,
        )
        self.files.setdefault(self.field_name, []).append(upload)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    sink = _PartCollector()
    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": sink.on_part_begin,
            "on_part_data": sink.on_part_data,
            "on_part_end": sink.on_part_end,
            "on_header_field": sink.on_header_field,
            "on_header_value": sink.on_header_value,
            "on_header_end": sink.on_header_end,
        },
    )
    parser.write(body)
    parser.finalize()

    return FormData(sink.data, sink.files)
