#!/usr/bin/env python3
"""
Push a JSON document to a remote endpoint.

Reads FILE (or stdin with "-"), checks that it holds exactly one JSON value,
and POSTs it to URL with Content-Type: application/json.

Run from project root:

    python scripts/push_json.py http://localhost:9000/hook payload.json
    cat payload.json | python scripts/push_json.py http://localhost:9000/hook -
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import httpx

# Project root on path so "ingestkit" resolves without an install
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from ingestkit.core.errors import DecodeError
from ingestkit.services.json_decoder import JSONIngestSpec, decode_json
from ingestkit.services.remote import push_json


def main() -> int:
    parser = argparse.ArgumentParser(description="POST a JSON file to a URL.")
    parser.add_argument("url", help="Destination URL.")
    parser.add_argument("file", help="JSON file to send, or - for stdin.")
    parser.add_argument(
        "--max-size",
        type=int,
        default=JSONIngestSpec().max_body_size,
        help="Refuse documents larger than this many bytes.",
    )
    args = parser.parse_args()

    raw = sys.stdin.buffer.read() if args.file == "-" else Path(args.file).read_bytes()
    spec = JSONIngestSpec(max_body_size=args.max_size, allow_unknown_fields=True)
    try:
        payload = decode_json(raw, spec, Any)
    except DecodeError as e:
        print(f"invalid JSON: {e.message}", file=sys.stderr)
        return 2

    try:
        response, status = push_json(args.url, payload)
    except httpx.HTTPError as e:
        print(f"push failed: {e}", file=sys.stderr)
        return 1

    print(f"{status} {response.reason_phrase}")
    if response.text:
        try:
            print(json.dumps(response.json(), indent=2))
        except ValueError:
            print(response.text)
    return 0 if status < 400 else 1


if __name__ == "__main__":
    sys.exit(main())
