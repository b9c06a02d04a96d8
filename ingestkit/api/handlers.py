"""
API handlers: call ingestion services with per-request specs, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of response writing and error logging.
"""

import logging
from dataclasses import asdict

from starlette.requests import Request
from starlette.responses import Response

from ingestkit.core.config import UPLOAD_DIR
from ingestkit.core.errors import (
    BodyTooLargeError,
    DecodeError,
    DisallowedTypeError,
    IngestError,
    UploadError,
    UploadIOError,
    UploadTooLargeError,
)
from ingestkit.schemas.upload import EchoRequest, UploadedFileOut
from ingestkit.services.downloads import download_static_file
from ingestkit.services.json_decoder import JSONIngestSpec, read_json
from ingestkit.services.response_codec import envelope, error_json, write_json
from ingestkit.services.upload_service import UploadSpec, upload_files

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases.
_STATUS_BY_ERROR: list[tuple[type[IngestError], int]] = [
    (DisallowedTypeError, 415),
    (UploadTooLargeError, 413),
    (BodyTooLargeError, 413),
    (UploadIOError, 500),
    (UploadError, 400),
    (DecodeError, 400),
]


def status_for(err: IngestError) -> int:
    """HTTP status for an ingestion error."""
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(err, cls):
            return status
    return 400


def _reject(where: str, err: IngestError) -> Response:
    status = status_for(err)
    if status >= 500:
        logger.error("[api:%s] failed status=%d: %s", where, status, err.message, exc_info=err)
    else:
        logger.warning("[api:%s] rejected status=%d: %s", where, status, err.message)
    return error_json(err, status)


async def handle_upload(request: Request, rename: bool | None = None, multiple: bool = True) -> Response:
    """
    Store the uploaded file(s) under UPLOAD_DIR and describe them in the envelope.
    ``rename`` overrides the configured rename policy for this request.
    """
    spec = UploadSpec.from_config(rename_on_conflict=rename)
    try:
        files = await upload_files(request, UPLOAD_DIR, spec, multiple=multiple)
    except UploadError as e:
        return _reject("upload", e)

    data = [UploadedFileOut(**asdict(f)).model_dump() for f in files]
    logger.info("[api:upload] OUT files=%d", len(data))
    return write_json(200, envelope(f"{len(data)} file(s) uploaded", data))


async def handle_echo(request: Request) -> Response:
    """Strictly decode an EchoRequest and send it back."""
    try:
        body = await read_json(request, JSONIngestSpec.from_config(), EchoRequest)
    except DecodeError as e:
        return _reject("echo", e)
    return write_json(200, envelope("payload accepted", body.model_dump()))


def handle_download(name: str) -> Response:
    """Send a stored upload as an attachment, keeping its stored name."""
    try:
        return download_static_file(UPLOAD_DIR, name, display_name=name)
    except FileNotFoundError:
        logger.warning("[api:download] not found name=%r", name)
        return error_json(f"file not found: {name}", 404)
