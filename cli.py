"""Simple CLI for the event-stream decoder.

Usage examples:
- JSON string input:
  python cli.py "{\"frame\":\"AAAA...\"}"

- JSON file input (prefix with @):
  python cli.py @request.json

- Raw frame file, every tagged answer, checksums verified:
  python cli.py "{\"frame\":\"@response.bin\"}" --all --strict --pretty

Notes:
- This CLI decodes exactly what it is given. It does not call Bedrock.
- Exit codes: 0 ok, 1 decode error (details in the output JSON), 2 unreadable input.
"""
import argparse
import json
from pathlib import Path
from typing import Any, Dict

from bedrock_eventstream.client import DecodeClient
from bedrock_eventstream.logging_util import get_logger

logger = get_logger(__name__)

def _load_input(spec: str) -> Dict[str, Any]:
    if spec.startswith("@"):
        p = Path(spec[1:])
        data = p.read_text(encoding="utf-8")
        return json.loads(data)

    return json.loads(spec)

def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="JSON string or @path/to/json")
    ap.add_argument("--pretty", action="store_true", help="Pretty print the output JSON")
    ap.add_argument("--strict", action="store_true", help="Verify prelude and message CRC32")
    ap.add_argument("--all", action="store_true", help="Return every tagged answer, not just the last")
    ap.add_argument("--stream", action="store_true", help="Decode every back-to-back frame in the buffer")
    args = ap.parse_args()

    try:
        req = _load_input(args.input)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to parse input: %s", e)
        return 2

    if not isinstance(req, dict):
        logger.error("Input must be a JSON object, got %s", type(req).__name__)
        return 2

    if args.strict:
        req["strict"] = True
    if args.all:
        req["answers"] = "all"
    if args.stream:
        req["stream"] = True

    client = DecodeClient()
    out = client.run(req, request_id="CLI")

    if args.pretty:
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(out, ensure_ascii=False))

    return 1 if out.get("error") else 0

if __name__ == "__main__":
    raise SystemExit(main())
