"""Serve stored files back to clients as attachments."""

import logging
import os
from pathlib import Path

from starlette.responses import FileResponse

logger = logging.getLogger(__name__)


def download_static_file(
    directory: str | os.PathLike[str],
    filename: str,
    display_name: str,
) -> FileResponse:
    """
    Stream ``directory/filename`` with ``Content-Disposition: attachment; filename="<display_name>"``.

    Raises:
        FileNotFoundError: If the file does not exist or resolves outside ``directory``.
    """
    root = Path(directory).resolve()
    path = (root / filename).resolve()
    if root not in path.parents or not path.is_file():
        raise FileNotFoundError(filename)
    logger.info("[downloads:download_static_file] serving %s as %r", path.name, display_name)
    return FileResponse(
        path,
        filename=display_name,
        content_disposition_type="attachment",
        media_type="application/octet-stream",
    )
