"""Bounded big-endian read primitives.

The parsers never index the buffer directly. They walk a ByteCursor that:
- tracks its own offset
- refuses to read past `end` (raising the caller's error type with the offset)
- decodes text strictly as UTF-8
"""
from __future__ import annotations

import struct
from typing import Optional, Type

from .errors import EventStreamError, MalformedHeader

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")

class ByteCursor:
    def __init__(
        self,
        buf: bytes,
        offset: int = 0,
        end: Optional[int] = None,
        error: Type[EventStreamError] = MalformedHeader,
    ):
        self.buf = buf
        self.offset = offset
        self.end = len(buf) if end is None else min(end, len(buf))
        self.error = error

    @property
    def remaining(self) -> int:
        return max(self.end - self.offset, 0)

    def _take(self, n: int, what: str) -> int:
        start = self.offset
        if n < 0 or start + n > self.end:
            raise self.error(
                f"{what}: need {n} byte(s) but only {self.remaining} left before {self.end}",
                offset=start,
            )
        self.offset = start + n
        return start

    def read_u8(self, what: str = "u8") -> int:
        start = self._take(1, what)
        return _U8.unpack_from(self.buf, start)[0]

    def read_u16_be(self, what: str = "u16") -> int:
        start = self._take(2, what)
        return _U16.unpack_from(self.buf, start)[0]

    def read_u32_be(self, what: str = "u32") -> int:
        start = self._take(4, what)
        return _U32.unpack_from(self.buf, start)[0]

    def read_bytes(self, n: int, what: str = "bytes") -> bytes:
        start = self._take(n, what)
        return bytes(self.buf[start:start + n])

    def read_utf8(self, n: int, what: str = "text") -> str:
        start = self.offset
        raw = self.read_bytes(n, what)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self.error(f"{what}: invalid UTF-8 ({e.reason})", offset=start + e.start) from e
