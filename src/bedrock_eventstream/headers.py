"""Header record codec.

Wire layout of one record:
  [name_len: u8][name: utf-8][value_type: u8][value_len: u16 BE][value: value_len bytes]

Only the string tag is interpreted. Every other tag is read with the same
layout so the record can be skipped; its bytes are kept raw and its string
form is decoded leniently.
"""
from __future__ import annotations

import struct
from typing import Optional, Tuple, Union

from .cursor import ByteCursor
from .types import HEADER_TYPE_STRING, HeaderRecord

MAX_NAME_LENGTH = 0xFF
MAX_VALUE_LENGTH = 0xFFFF

def parse_header(buf: bytes, offset: int, end: Optional[int] = None) -> Tuple[HeaderRecord, int]:
    """Decode one header record starting at `offset`.

    `end` bounds the read (defaults to the buffer end). Returns the record and
    the number of bytes it consumed. Raises MalformedHeader if any field runs
    past the bound or a name/string value is not valid UTF-8.
    """
    cur = ByteCursor(buf, offset=offset, end=end)

    name_length = cur.read_u8("header name length")
    name = cur.read_utf8(name_length, "header name")
    value_type = cur.read_u8("header value type")
    value_length = cur.read_u16_be("header value length")

    if value_type == HEADER_TYPE_STRING:
        value_start = cur.offset
        value = cur.read_utf8(value_length, f"header {name!r} value")
        value_bytes = bytes(buf[value_start:cur.offset])
    else:
        value_bytes = cur.read_bytes(value_length, f"header {name!r} value")
        value = value_bytes.decode("utf-8", errors="replace")

    record = HeaderRecord(name=name, value_type=value_type, value=value, value_bytes=value_bytes)
    return record, cur.offset - offset

def encode_header(header: Union[HeaderRecord, Tuple[str, str]]) -> bytes:
    if isinstance(header, HeaderRecord):
        name, value_type, value_bytes = header.name, header.value_type, header.value_bytes
    else:
        name, value = header
        value_type, value_bytes = HEADER_TYPE_STRING, str(value).encode("utf-8")

    name_bytes = name.encode("utf-8")
    if len(name_bytes) > MAX_NAME_LENGTH:
        raise ValueError(f"header name too long: {len(name_bytes)} bytes (max {MAX_NAME_LENGTH})")
    if len(value_bytes) > MAX_VALUE_LENGTH:
        raise ValueError(f"header {name!r} value too long: {len(value_bytes)} bytes (max {MAX_VALUE_LENGTH})")

    return (
        struct.pack(">B", len(name_bytes))
        + name_bytes
        + struct.pack(">BH", value_type, len(value_bytes))
        + value_bytes
    )
