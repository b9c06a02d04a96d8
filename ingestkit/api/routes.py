"""
API route aggregator: register endpoints and delegate to handlers. No logic here.
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response

from ingestkit.api.handlers import handle_download, handle_echo, handle_upload
from ingestkit.schemas.envelope import ResponseEnvelope
from ingestkit.schemas.upload import UploadResponse

router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "ingestkit running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Uploads ---

@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["uploads"],
    summary="Upload and persist files",
    description="Accept every file part of a multipart/form-data body. Types are judged by content sniffing only; "
    "disallowed types return 415, oversized files 413, storage failures 500.",
)
async def upload_many(request: Request, rename: bool | None = None) -> Response:
    return await handle_upload(request, rename=rename, multiple=True)


@router.post(
    "/upload/one",
    response_model=UploadResponse,
    tags=["uploads"],
    summary="Upload and persist a single file",
    description="Like /upload but only the first file part is stored.",
)
async def upload_one(request: Request, rename: bool | None = None) -> Response:
    return await handle_upload(request, rename=rename, multiple=False)


@router.get(
    "/files/{name}",
    tags=["uploads"],
    summary="Download a stored file",
    description="Stream a previously uploaded file as an attachment. 404 if it does not exist.",
)
def download(name: str) -> Response:
    return handle_download(name)


# --- JSON ---

@router.post(
    "/echo",
    response_model=ResponseEnvelope,
    tags=["json"],
    summary="Strictly decode a JSON body and echo it",
    description="Body must be exactly one JSON object {message: str, tags?: [str]}. Unknown keys, wrong types, "
    "trailing values and empty bodies return 400; bodies over the size limit return 413.",
)
async def echo(request: Request) -> Response:
    return await handle_echo(request)
