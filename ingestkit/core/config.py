"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Services never read these directly; handlers turn them into the
per-call UploadSpec / JSONIngestSpec objects.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


# Upload storage
UPLOAD_DIR: str = os.getenv("INGESTKIT_UPLOAD_DIR", "data/uploads").strip() or "data/uploads"

# MIME types accepted by the upload endpoints, judged by sniffed content only
ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    t.strip().lower()
    for t in os.getenv(
        "INGESTKIT_ALLOWED_MIME_TYPES",
        "image/jpeg,image/png,image/gif,application/pdf",
    ).split(",")
    if t.strip()
)

# Size limits (bytes). 1 GiB stands in for "unbounded" uploads.
MAX_UPLOAD_SIZE: int = _env_int("INGESTKIT_MAX_UPLOAD_SIZE", 1024 * 1024 * 1024)
MAX_JSON_SIZE: int = _env_int("INGESTKIT_MAX_JSON_SIZE", 1024 * 1024)

# Policies
ALLOW_UNKNOWN_FIELDS: bool = _env_bool("INGESTKIT_ALLOW_UNKNOWN_FIELDS", False)
RENAME_UPLOADS: bool = _env_bool("INGESTKIT_RENAME_UPLOADS", True)

# Renamed uploads: random stem length and attempts before giving up on collisions
RANDOM_NAME_LENGTH: int = 25
RENAME_ATTEMPTS: int = 5

# Stream copy buffer
COPY_CHUNK_SIZE: int = 1024 * 1024

# Outbound push (seconds)
PUSH_TIMEOUT: float = float(os.getenv("INGESTKIT_PUSH_TIMEOUT", "15.0"))

LOG_LEVEL: str = os.getenv("INGESTKIT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
