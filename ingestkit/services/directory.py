"""Target directory provisioning for uploads."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DIR_MODE = 0o755


def ensure_dir(path: str | os.PathLike[str]) -> Path:
    """
    Create ``path`` (and missing ancestors) with mode 0755 unless it already exists.

    Idempotent, and safe when another request creates the same directory first.

    Raises:
        NotADirectoryError: If ``path`` exists but is not a directory.
        OSError: If the directory cannot be created.
    """
    target = Path(path)
    if target.exists() and not target.is_dir():
        raise NotADirectoryError(f"{target} exists and is not a directory")
    try:
        target.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except FileExistsError as e:
        # lost a race against something that is not a directory
        raise NotADirectoryError(f"{target} exists and is not a directory") from e
    logger.debug("[directory:ensure_dir] ready path=%s", target)
    return target
