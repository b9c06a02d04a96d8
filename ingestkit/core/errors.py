"""
Application errors for clean API error handling.

Services raise these; the API layer maps them to HTTP statuses and renders them
with error_json. Every error carries a user-facing ``message``.
"""


class IngestError(Exception):
    """Base class for every rejection raised by the ingestion services."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# --- Upload ---

class UploadError(IngestError):
    """Raised when a multipart upload cannot be accepted."""


class NotMultipartError(UploadError):
    def __init__(self, detail: str = "") -> None:
        message = "request body is not multipart/form-data"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NoFileError(UploadError):
    def __init__(self) -> None:
        super().__init__("no file was uploaded")


class DisallowedTypeError(UploadError):
    """Raised when the sniffed content type is outside the allow-list."""

    def __init__(self, actual: str, allowed: frozenset[str]) -> None:
        self.actual = actual
        self.allowed = allowed
        super().__init__(
            f"the uploaded file type {actual!r} is not permitted "
            f"(allowed: {', '.join(sorted(allowed))})"
        )


class UploadTooLargeError(UploadError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"the uploaded file is too big (limit is {limit} bytes)")


class UploadIOError(UploadError):
    """Raised when the target directory or the destination file cannot be written."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"failed to store uploaded file: {detail}")


# --- JSON decode ---

class DecodeError(IngestError):
    """Raised when a JSON request body is rejected."""


class EmptyBodyError(DecodeError):
    def __init__(self) -> None:
        super().__init__("body must not be empty")


class MalformedSyntaxError(DecodeError):
    def __init__(self, offset: int) -> None:
        self.offset = offset
        super().__init__(f"body contains badly-formed JSON (at character {offset})")


class WrongFieldTypeError(DecodeError):
    def __init__(self, field: str) -> None:
        self.field = field
        if field:
            super().__init__(f"body contains incorrect JSON type for field {field!r}")
        else:
            super().__init__("body contains incorrect JSON type")


class MissingFieldError(DecodeError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"body is missing required field {field!r}")


class UnknownFieldError(DecodeError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"body contains unknown key {key!r}")


class MultipleValuesError(DecodeError):
    def __init__(self) -> None:
        super().__init__("body must contain only one JSON value")


class BodyTooLargeError(DecodeError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"body must not be larger than {limit} bytes")


# --- Text tools ---

class SlugError(ValueError):
    """Raised when a slug cannot be produced from the input."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
