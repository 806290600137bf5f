"""Answer extraction from an orchestration trace payload.

The payload carries the model's own conversation as a JSON string:
  payload.trace.orchestrationTrace.modelInvocationInput.text -> '{"messages": [...]}'

Rules:
- The inner text is decoded as a second, separate JSON document.
- Assistant entries are concatenated in order (a reply may be split across entries).
- A tagged segment is <answer>...</answer> whose body never contains another <answer>.
- Nothing found is an AnswerNotFound, never an empty string.
"""
from __future__ import annotations

import json
import re
from functools import lru_cache
from typing import Any, List, Pattern

from .errors import AnswerNotFound

TRACE_PATH = ("trace", "orchestrationTrace", "modelInvocationInput", "text")
DEFAULT_TAG = "answer"

@lru_cache(maxsize=16)
def _segment_pattern(tag: str) -> Pattern[str]:
    open_tag = re.escape(f"<{tag}>")
    close_tag = re.escape(f"</{tag}>")
    return re.compile(f"{open_tag}((?:(?!{open_tag}).)*?){close_tag}", re.DOTALL)

def _trace_messages(payload: Any) -> List[Any]:
    node = payload
    for depth, key in enumerate(TRACE_PATH):
        if not isinstance(node, dict) or key not in node:
            where = ".".join(TRACE_PATH[: depth + 1])
            raise AnswerNotFound(f"payload has no {where}")
        node = node[key]

    if not isinstance(node, str):
        raise AnswerNotFound(f"{'.'.join(TRACE_PATH)} is {type(node).__name__}, expected a JSON string")

    try:
        inner = json.loads(node)
    except json.JSONDecodeError as e:
        raise AnswerNotFound(f"model invocation text is not valid JSON: {e.msg}") from e

    messages = inner.get("messages") if isinstance(inner, dict) else None
    if not isinstance(messages, list):
        raise AnswerNotFound("model invocation text has no messages list")
    return messages

def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content

    # Messages-API style content blocks.
    if isinstance(content, list):
        parts: List[str] = []
        for block in content:
            if not isinstance(block, dict):
                continue
            if block.get("type", "text") == "text" and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)

    raise AnswerNotFound(f"assistant content is {type(content).__name__}, expected text")

def assistant_text(payload: Any) -> str:
    """Concatenated content of every assistant entry in the trace."""
    parts: List[str] = []
    for m in _trace_messages(payload):
        if isinstance(m, dict) and m.get("role") == "assistant":
            parts.append(_content_text(m.get("content")))

    if not parts:
        raise AnswerNotFound("trace has no assistant message")
    return "".join(parts)

def extract_all_answers(payload: Any, tag: str = DEFAULT_TAG) -> List[str]:
    """Every tagged segment (tags included), in order of appearance."""
    text = assistant_text(payload)
    matches = [m.group(0) for m in _segment_pattern(tag).finditer(text)]
    if not matches:
        raise AnswerNotFound(f"no <{tag}>...</{tag}> segment in assistant content")
    return matches

def extract_answer(payload: Any, tag: str = DEFAULT_TAG) -> str:
    """The last tagged segment (tags included)."""
    return extract_all_answers(payload, tag)[-1]

def unwrap_answer(segment: str, tag: str = DEFAULT_TAG) -> str:
    m = _segment_pattern(tag).fullmatch(segment)
    if not m:
        raise AnswerNotFound(f"not a <{tag}> segment: {segment[:80]!r}")
    return m.group(1)
