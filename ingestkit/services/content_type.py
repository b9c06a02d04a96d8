"""
Content-type sniffing for untrusted uploads.

The classification is taken from the leading bytes only. Client-supplied part
headers and filename extensions are never consulted.
"""

from typing import BinaryIO

import filetype

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"

# filetype's matchers never look beyond this window
SNIFF_BYTES = 8192

_TEXT_CONTROL_ALLOWED = {"\t", "\n", "\r", "\f", "\x1b"}


def base_mime(value: str | None) -> str:
    """Strip parameters and normalize case: 'Text/Plain; charset=utf-8' -> 'text/plain'."""
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


def _looks_like_text(prefix: bytes) -> bool:
    try:
        text = prefix.decode("utf-8")
    except UnicodeDecodeError as e:
        # a multi-byte character cut off by the prefix boundary is still text
        if e.start < len(prefix) - 3 or e.reason != "unexpected end of data":
            return False
        text = prefix[: e.start].decode("utf-8")
    return all(ch.isprintable() or ch in _TEXT_CONTROL_ALLOWED for ch in text)


def classify_bytes(prefix: bytes) -> str:
    """Best-effort MIME type of a byte prefix; never raises."""
    if not prefix:
        return OCTET_STREAM
    kind = filetype.guess(prefix[:SNIFF_BYTES])
    if kind is not None:
        return kind.mime
    if _looks_like_text(prefix[:SNIFF_BYTES]):
        return TEXT_PLAIN
    return OCTET_STREAM


def classify(stream: BinaryIO) -> str:
    """
    Sniff the MIME type of a seekable binary stream.

    Reads at most SNIFF_BYTES and seeks back to where the stream was, so the
    caller can still copy the full content afterwards.
    """
    start = stream.tell()
    prefix = stream.read(SNIFF_BYTES)
    stream.seek(start)
    return classify_bytes(prefix)
