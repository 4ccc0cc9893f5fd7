import os
import re
import time
import random
import string
import logging
from typing import Iterable, NamedTuple, Optional

from fastapi import UploadFile

from errors import InvalidArgument

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
_BASE36 = string.digits + string.ascii_lowercase


class Attachment(NamedTuple):
    filename: str
    content: bytes


def _random_suffix(length: int = 11) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def make_filename(original: str) -> str:
    ext = os.path.splitext(original or "")[1].lower()
    return f"{int(time.time() * 1000)}_{_random_suffix()}{ext}"


def allowed_file(filename: str, content_type: Optional[str], allowed: Iterable[str]) -> bool:
    pattern = re.compile("|".join(allowed))
    ext = os.path.splitext(filename or "")[1].lower()
    return bool(pattern.search(ext)) and bool(pattern.search(content_type or ""))


async def read_upload(
    file: Optional[UploadFile],
    max_size: int,
    allowed: Iterable[str],
) -> Optional[Attachment]:
    """Validate an incoming file without touching the disk."""
    if file is None or not file.filename:
        return None
    if not allowed_file(file.filename, file.content_type, allowed):
        raise InvalidArgument("Only PDF or Image files are allowed!")

    too_large = f"File too large: {file.filename}"
    if file.size is not None and file.size > max_size:
        raise InvalidArgument(too_large)
    # one byte past the limit is enough to detect an oversized body
    content = await file.read(max_size + 1)
    if len(content) > max_size:
        raise InvalidArgument(too_large)
    return Attachment(file.filename, content)


def write_upload(upload_dir: str, attachment: Attachment) -> str:
    """Store a validated attachment; returns the public path it is served from."""
    name = make_filename(attachment.filename)
    os.makedirs(upload_dir, exist_ok=True)
    with open(os.path.join(upload_dir, name), "wb") as buffer:
        buffer.write(attachment.content)
    logger.info("Stored upload %s (%d bytes)", name, len(attachment.content))
    return f"{URL_PREFIX}/{name}"
