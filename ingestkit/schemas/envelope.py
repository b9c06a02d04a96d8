"""Uniform JSON envelope used by every response, success or failure."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ResponseEnvelope(BaseModel):
    """Wire shape {"error": bool, "message": str, "data"?: any}. Field order is fixed."""

    error: bool = Field(False, description="True when the request was rejected.")
    message: str = Field("", description="Human-readable outcome or rejection reason.")
    data: Any | None = Field(None, description="Payload on success; never present on errors.")

    @model_validator(mode="after")
    def check_no_data_on_error(self) -> "ResponseEnvelope":
        if self.error and self.data is not None:
            raise ValueError("an error envelope must not carry data")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dump for the wire, dropping ``data`` when it is absent."""
        return self.model_dump(mode="json", exclude={"data"} if self.data is None else None)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": False, "message": "2 file(s) uploaded", "data": [{"original_name": "cat.png"}]},
                {"error": True, "message": "body must not be empty"},
            ]
        }
    }
