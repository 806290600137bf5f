"""Shared types and lightweight data containers.

We avoid heavy frameworks here. The goal is:
- keep the decoder portable (no SDK, no I/O)
- keep typing clear but not over-abstract
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Tuple

AnswerMode = Literal["last", "all", "none"]

# Header value type tags of the event-stream encoding.
HEADER_TYPE_STRING = 7

PRELUDE_LENGTH = 12
CHECKSUM_LENGTH = 4
MIN_FRAME_LENGTH = PRELUDE_LENGTH + CHECKSUM_LENGTH

@dataclass(frozen=True)
class HeaderRecord:
    name: str
    value_type: int
    value: str
    value_bytes: bytes = b""

    def __post_init__(self):
        if not self.value_bytes and self.value:
            object.__setattr__(self, "value_bytes", self.value.encode("utf-8"))

    @property
    def record_length(self) -> int:
        return 1 + len(self.name.encode("utf-8")) + 3 + len(self.value_bytes)

    @property
    def is_string(self) -> bool:
        return self.value_type == HEADER_TYPE_STRING

@dataclass(frozen=True)
class Frame:
    total_length: int
    headers_length: int
    prelude_checksum: int
    headers: Tuple[HeaderRecord, ...]
    payload: Any
    message_checksum: int

    @property
    def payload_length(self) -> int:
        return self.total_length - PRELUDE_LENGTH - self.headers_length - CHECKSUM_LENGTH

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for h in self.headers:
            if h.name == name:
                return h.value
        return default

    def headers_dict(self) -> Dict[str, str]:
        # Later duplicates win, same as a plain dict build.
        return {h.name: h.value for h in self.headers}

    @property
    def message_type(self) -> Optional[str]:
        return self.header(":message-type")

    @property
    def event_type(self) -> Optional[str]:
        return self.header(":event-type")

    @property
    def content_type(self) -> Optional[str]:
        return self.header(":content-type")

@dataclass
class DecoderSettings:
    strict_checksum: bool = False
    answer_tag: str = "answer"
    extract_answer: AnswerMode = "last"

@dataclass
class DecodeRequest:
    frame_bytes: bytes
    strict: bool
    answers: AnswerMode
    answer_tag: str
    stream: bool = False
    source: str = "inline"
