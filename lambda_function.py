"""AWS Lambda entrypoint.

Design goals:
- Keep this file small and stable.
- Delegate all real logic to src/bedrock_eventstream so that:
  - The same codebase can be used from CLI and from Lambda.
  - The decoder core stays free of any Lambda/event glue.

Expected event shapes (minimal):
1) API Gateway (body is a JSON string):
   {"body": "{\"frame\":\"AAAA...\",\"answers\":\"all\"}"}

2) API Gateway with a base64-encoded body:
   {"body": "eyJmcmFtZSI6...", "isBase64Encoded": true}

3) Direct invoke / local test (event itself is the JSON dict):
   {"frame": "AAAA...", "strict": true}

Return:
- statusCode: 200 unless the handler itself crashes badly
- body: JSON string of {"frames":..., "answer":..., "answers":..., "error":..., "meta":...}
"""
import base64
import binascii
import json
from typing import Any, Dict

from bedrock_eventstream.client import DecodeClient
from bedrock_eventstream.logging_util import get_logger

logger = get_logger(__name__)

_client = DecodeClient()

def _safe_json_loads(s: Any):
    if isinstance(s, dict):
        return s
    if not isinstance(s, str):
        return {}
    s = s.strip()
    if not s:
        return {}
    try:
        return json.loads(s)
    except json.JSONDecodeError:
        logger.warning("event body is not JSON (%d chars)", len(s))
        return {}

def _event_body(event: Dict[str, Any]) -> Any:
    if "body" not in event:
        return event
    body = event.get("body")
    if event.get("isBase64Encoded") and isinstance(body, str):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning("failed to decode base64 event body: %s", e)
            return {}
    return body

def lambda_handler(event: Dict[str, Any], context: Any):
    try:
        req = _safe_json_loads(_event_body(event))

        result = _client.run(req, request_id=getattr(context, "aws_request_id", None))
        return {"statusCode": 200, "body": json.dumps(result, ensure_ascii=False)}

    except Exception as e:
        logger.exception("lambda_handler fatal error: %s", e)
        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    "frames": None,
                    "answer": None,
                    "answers": None,
                    "error": {"type": type(e).__name__, "stage": None, "offset": None, "message": str(e)},
                    "meta": {"where": "lambda_handler"},
                },
                ensure_ascii=False,
            ),
        }
