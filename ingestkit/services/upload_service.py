"""
Multipart upload ingestion: parse, classify, name, and persist uploaded files.

Responsibility: Turn a multipart request into files on disk under a target
directory, enforcing the caller's UploadSpec. Raises UploadError subclasses;
no HTTP responses are produced here.
"""

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from ingestkit.core.config import (
    ALLOWED_MIME_TYPES,
    COPY_CHUNK_SIZE,
    MAX_UPLOAD_SIZE,
    RANDOM_NAME_LENGTH,
    RENAME_ATTEMPTS,
    RENAME_UPLOADS,
)
from ingestkit.core.errors import (
    DisallowedTypeError,
    NoFileError,
    NotMultipartError,
    UploadIOError,
    UploadTooLargeError,
)
from ingestkit.services.content_type import base_mime, classify
from ingestkit.services.directory import ensure_dir
from ingestkit.services.text_tools import random_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadSpec:
    """Upload policy for a single call. An empty ``allowed_types`` accepts any type."""

    allowed_types: frozenset[str] = field(default_factory=frozenset)
    max_upload_size: int = MAX_UPLOAD_SIZE
    rename_on_conflict: bool = False

    @classmethod
    def from_config(cls, rename_on_conflict: bool | None = None) -> "UploadSpec":
        return cls(
            allowed_types=ALLOWED_MIME_TYPES,
            max_upload_size=MAX_UPLOAD_SIZE,
            rename_on_conflict=RENAME_UPLOADS if rename_on_conflict is None else rename_on_conflict,
        )


@dataclass(frozen=True)
class UploadedFile:
    """One persisted multipart part."""

    original_name: str
    new_name: str
    size_bytes: int


def _sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent path traversal (../). Returns safe basename."""
    if not filename or not filename.strip():
        return "unnamed"
    base = Path(filename.replace("\\", "/")).name
    safe = base.replace("..", "").replace("/", "")
    safe = re.sub(r"[^\w.\-]", "_", safe)
    return safe.strip() or "unnamed"


def _stream_size(stream: BinaryIO) -> int:
    start = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(start)
    return size


def _extension(name: str) -> str:
    """Everything from the last dot on; a dot-file such as '.png' keeps its whole name."""
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _open_destination(target: Path, original_name: str, spec: UploadSpec) -> tuple[Path, BinaryIO]:
    """Pick the output path and open it for writing."""
    safe_name = _sanitize_filename(original_name)
    if not spec.rename_on_conflict:
        dest = target / safe_name
        return dest, open(dest, "wb")

    ext = _extension(safe_name)
    for _ in range(RENAME_ATTEMPTS):
        dest = target / f"{random_string(RANDOM_NAME_LENGTH)}{ext}"
        try:
            return dest, open(dest, "xb")
        except FileExistsError:
            logger.debug("[upload:open_destination] name collision on %s, retrying", dest.name)
    raise UploadIOError(f"no free file name after {RENAME_ATTEMPTS} attempts")


def _copy_limited(src: BinaryIO, dst: BinaryIO, limit: int) -> int:
    written = 0
    while True:
        chunk = src.read(COPY_CHUNK_SIZE)
        if not chunk:
            break
        written += len(chunk)
        if written > limit:
            raise UploadTooLargeError(limit)
        dst.write(chunk)
    return written


def _store_part(upload: UploadFile, target: Path, spec: UploadSpec) -> UploadedFile:
    """
    Classify, validate and write one part. Blocking; run in a worker thread.

    Nothing is written when the type check fails; a partially written file is
    removed before any error is raised.
    """
    original_name = upload.filename or ""
    actual = classify(upload.file)
    if spec.allowed_types and base_mime(actual) not in {base_mime(t) for t in spec.allowed_types}:
        raise DisallowedTypeError(actual, frozenset(spec.allowed_types))

    try:
        ensure_dir(target)
        dest, out = _open_destination(target, original_name, spec)
    except OSError as e:
        raise UploadIOError(str(e)) from e

    try:
        with out:
            upload.file.seek(0)
            size = _copy_limited(upload.file, out, spec.max_upload_size)
    except OSError as e:
        dest.unlink(missing_ok=True)
        raise UploadIOError(str(e)) from e
    except BaseException:
        dest.unlink(missing_ok=True)
        raise

    logger.info(
        "[upload:store_part] saved original=%r new=%s type=%s size=%d",
        original_name, dest.name, actual, size,
    )
    return UploadedFile(original_name=original_name, new_name=dest.name, size_bytes=size)


def _remove_written(target: Path, stored: list[UploadedFile]) -> None:
    for item in stored:
        try:
            (target / item.new_name).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("[upload:rollback] could not remove %s: %s", item.new_name, e)


async def _settle(pending: asyncio.Future) -> list[UploadedFile]:
    """
    Wait for a part still being copied when the call is aborted.

    A cancelled caller does not stop the worker thread, so its file must be
    finished before it can be rolled back and before the form is closed.
    """
    if not pending.done():
        await asyncio.wait([pending])
    if pending.cancelled() or pending.exception() is not None:
        return []
    return [pending.result()]


async def upload_files(
    request: Request,
    target_dir: str | os.PathLike[str],
    spec: UploadSpec,
    multiple: bool = True,
) -> list[UploadedFile]:
    """
    Validate and persist the file parts of a multipart request.

    Args:
        request: Incoming request with a multipart/form-data body.
        target_dir: Directory the files are written to; created if missing.
        spec: Allow-list, size limit and rename policy for this call.
        multiple: Process every file part; when False only the first one.

    Returns:
        UploadedFile per persisted part, in the order the parts were sent.

    Raises:
        NotMultipartError: Body is not (valid) multipart/form-data.
        NoFileError: No non-empty file part was sent.
        DisallowedTypeError: Sniffed content type is not in ``spec.allowed_types``.
        UploadTooLargeError: A part exceeded ``spec.max_upload_size``.
        UploadIOError: The directory or a file could not be written.

    Either every selected part is stored or, on error or cancellation, none of
    them is.
    """
    content_type = base_mime(request.headers.get("content-type"))
    if content_type != "multipart/form-data":
        raise NotMultipartError(f"got {content_type or 'no content type'}")

    target = Path(target_dir)
    try:
        form = await request.form()
    except (MultiPartException, HTTPException, KeyError, ValueError) as e:
        detail = getattr(e, "message", None) or getattr(e, "detail", None) or str(e)
        raise NotMultipartError(str(detail)) from e

    stored: list[UploadedFile] = []
    pending: asyncio.Future | None = None
    try:
        parts = [
            value
            for _, value in form.multi_items()
            if isinstance(value, UploadFile) and _stream_size(value.file) > 0
        ]
        if not parts:
            raise NoFileError()
        if not multiple:
            parts = parts[:1]

        for part in parts:
            pending = asyncio.ensure_future(asyncio.to_thread(_store_part, part, target, spec))
            stored.append(await asyncio.shield(pending))
            pending = None
    except BaseException:
        if pending is not None:
            stored.extend(await _settle(pending))
        _remove_written(target, stored)
        raise
    finally:
        await form.close()

    return stored


async def upload_one_file(
    request: Request,
    target_dir: str | os.PathLike[str],
    spec: UploadSpec,
) -> UploadedFile:
    """Convenience wrapper around upload_files that stores only the first file part."""
    files = await upload_files(request, target_dir, spec, multiple=False)
    return files[0]
