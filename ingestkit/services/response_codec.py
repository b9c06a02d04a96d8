"""
Response serialization: every body is JSON, every error is an envelope.

Responsibility: Build exactly one Starlette response per call. Transport
concerns such as sending it are left to the framework.
"""

import json
from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import Response

from ingestkit.schemas.envelope import ResponseEnvelope

JSON_MEDIA_TYPE = "application/json"


def envelope(message: str, data: Any = None) -> ResponseEnvelope:
    """Success envelope carrying ``data``."""
    return ResponseEnvelope(error=False, message=message, data=data)


def _to_jsonable(payload: Any) -> Any:
    if isinstance(payload, ResponseEnvelope):
        return payload.to_wire()
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    return jsonable_encoder(payload)


def write_json(
    status_code: int,
    payload: Any,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """
    Serialize ``payload`` as an application/json response with ``status_code``.

    Caller headers are applied as given, except Content-Type which is always JSON.

    Raises:
        TypeError, ValueError: If ``payload`` cannot be encoded as JSON.
    """
    body = json.dumps(
        _to_jsonable(payload),
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    ).encode("utf-8")
    extra = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}
    return Response(content=body, status_code=status_code, headers=extra, media_type=JSON_MEDIA_TYPE)


def error_json(err: Exception | str, status_code: int = 400) -> Response:
    """Render ``err`` as {"error": true, "message": ...} with ``status_code`` (400 by default)."""
    message = getattr(err, "message", None) or str(err)
    return write_json(status_code, ResponseEnvelope(error=True, message=message))
