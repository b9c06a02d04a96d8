"""Schemas for the upload and echo endpoints."""

from pydantic import BaseModel, Field


class UploadedFileOut(BaseModel):
    """One stored file as reported to the client."""

    original_name: str = Field(..., description="Filename the client sent, unchanged.")
    new_name: str = Field(..., description="Name of the file on disk.")
    size_bytes: int = Field(..., description="Bytes written.")


class UploadResponse(BaseModel):
    """Envelope returned by POST /upload and POST /upload/one."""

    error: bool = False
    message: str = ""
    data: list[UploadedFileOut] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": False,
                    "message": "1 file(s) uploaded",
                    "data": [{"original_name": "cat.png", "new_name": "q3ZrT0aYbLm8XkP2dW9sVnC1e.png", "size_bytes": 11881}],
                }
            ]
        }
    }


class EchoRequest(BaseModel):
    """Request body for POST /echo."""

    message: str = Field(..., description="Any text.")
    tags: list[str] = Field(default_factory=list, description="Optional labels.")
