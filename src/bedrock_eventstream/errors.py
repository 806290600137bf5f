"""Typed decode failures.

Every failure carries the stage it happened at and, where it makes sense,
the byte offset involved. The decoder never returns partial results: it
either returns a full value or raises one of these.
"""
from __future__ import annotations

from typing import Optional


class EventStreamError(Exception):
    stage = "decode"

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset

    def __str__(self) -> str:
        msg = super().__str__()
        if self.offset is None:
            return f"[{self.stage}] {msg}"
        return f"[{self.stage}@{self.offset}] {msg}"


class BufferTooShort(EventStreamError):
    stage = "prelude"


class MalformedHeaders(EventStreamError):
    stage = "headers"


class MalformedHeader(MalformedHeaders):
    stage = "header"


class PayloadDecodeError(EventStreamError):
    stage = "payload"

    def __init__(self, message: str, diagnostic: str = "", offset: Optional[int] = None):
        super().__init__(message, offset=offset)
        self.diagnostic = diagnostic


class ChecksumMismatch(EventStreamError):
    stage = "checksum"

    def __init__(self, message: str, expected: int, actual: int, offset: Optional[int] = None):
        super().__init__(message, offset=offset)
        self.expected = expected
        self.actual = actual


class AnswerNotFound(EventStreamError):
    stage = "answer"


class InputError(EventStreamError):
    stage = "input"
