"""Staging of uploaded images on local disk for the duration of one request."""
from __future__ import annotations

import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional

from fastapi import UploadFile

from ..exceptions import ValidationError
from ..logger import logger

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StagedImage:
    path: str
    size: int
    mime_type: str
    filename: Optional[str]

    def read_bytes(self) -> bytes:
        with open(self.path, "rb") as f:
            return f.read()


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").lower().split(";", 1)[0].strip()


def validate_image_type(content_type: Optional[str], allowed: Iterable[str]) -> str:
    mime_type = normalize_content_type(content_type)
    if mime_type not in set(allowed):
        raise ValidationError("Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed.")
    return mime_type


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to remove staged upload {path}: {e}")


@asynccontextmanager
async def staged_image(
    upload: Optional[UploadFile],
    *,
    upload_dir: str,
    max_bytes: int,
    allowed_types: Iterable[str],
) -> AsyncIterator[StagedImage]:
    """
    Copy an upload to a temporary file and remove it on exit.

    The type check runs before anything is written and the copy stops as
    soon as ``max_bytes`` is exceeded.
    """
    if upload is None or not upload.filename:
        raise ValidationError("No image uploaded")
    mime_type = validate_image_type(upload.content_type, allowed_types)

    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(prefix="upload-", dir=upload_dir)
    try:
        size = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(
                        f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
                    )
                out.write(chunk)

        if size == 0:
            raise ValidationError("Uploaded image is empty")

        yield StagedImage(path=path, size=size, mime_type=mime_type, filename=upload.filename)
    finally:
        _discard(path)
