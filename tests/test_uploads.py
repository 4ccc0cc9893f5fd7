import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from errors import InvalidArgument
from uploads import read_upload

ALLOWED = ("pdf", "jpeg", "jpg", "png")


class RecordingBuffer(io.BytesIO):
    def __init__(self, data):
        super().__init__(data)
        self.requested = []

    def read(self, size=-1):
        self.requested.append(size)
        return super().read(size)


def _upload(data, size=None, filename="scan.png", content_type="image/png"):
    buffer = RecordingBuffer(data)
    upload = UploadFile(
        buffer,
        size=size,
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )
    return upload, buffer


def test_declared_size_over_limit_rejected_without_reading():
    upload, buffer = _upload(b"x" * 32, size=32)
    with pytest.raises(InvalidArgument) as exc:
        asyncio.run(read_upload(upload, 8, ALLOWED))
    assert exc.value.message == "File too large: scan.png"
    assert buffer.requested == []


def test_unknown_size_reads_at_most_one_byte_past_limit():
    upload, buffer = _upload(b"x" * 1024)
    with pytest.raises(InvalidArgument):
        asyncio.run(read_upload(upload, 8, ALLOWED))
    assert buffer.requested == [9]


def test_body_at_limit_accepted():
    upload, buffer = _upload(b"x" * 8)
    attachment = asyncio.run(read_upload(upload, 8, ALLOWED))
    assert attachment.filename == "scan.png"
    assert attachment.content == b"x" * 8
    assert buffer.requested == [9]


def test_missing_file_is_none():
    assert asyncio.run(read_upload(None, 8, ALLOWED)) is None
