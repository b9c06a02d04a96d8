"""
Outbound JSON push to a remote endpoint.

Pass your own httpx.Client to control transport (tests use httpx.MockTransport).
"""

import logging
from typing import Any

import httpx
from fastapi.encoders import jsonable_encoder

from ingestkit.core.config import PUSH_TIMEOUT

logger = logging.getLogger(__name__)


def push_json(
    url: str,
    payload: Any,
    client: httpx.Client | None = None,
) -> tuple[httpx.Response, int]:
    """
    POST ``payload`` as JSON to ``url``.

    Returns:
        (response, status_code). The response body is fully read.

    Raises:
        httpx.HTTPError: On transport failures. Non-2xx statuses are returned, not raised.
    """
    body = jsonable_encoder(payload)
    headers = {"Content-Type": "application/json"}
    logger.info("[remote:push_json] POST %s", url)
    if client is not None:
        response = client.post(url, json=body, headers=headers)
    else:
        with httpx.Client(timeout=PUSH_TIMEOUT) as own_client:
            response = own_client.post(url, json=body, headers=headers)
    logger.info("[remote:push_json] %s -> %d", url, response.status_code)
    return response, response.status_code
