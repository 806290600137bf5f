"""Event-stream frame codec.

Frame layout:
  [total_length: u32 BE][headers_length: u32 BE][prelude_crc: u32 BE]
  [headers: headers_length bytes]
  [payload: total_length - headers_length - 16 bytes, UTF-8 JSON]
  [message_crc: u32 BE]

Decisions:
- Checksums are read and kept on the Frame but NOT verified unless strict=True.
- Strict mode checks both CRC32 values before any header is parsed, so a
  corrupted frame reports ChecksumMismatch rather than a downstream parse error.
- decode_frame ignores bytes past total_length; iter_frames treats them as
  the next frame.
"""
from __future__ import annotations

import json
import struct
import zlib
from typing import Any, Iterable, Iterator, List, Tuple, Union

from .cursor import ByteCursor
from .errors import BufferTooShort, ChecksumMismatch, MalformedHeaders, PayloadDecodeError
from .headers import encode_header, parse_header
from .types import CHECKSUM_LENGTH, MIN_FRAME_LENGTH, PRELUDE_LENGTH, Frame, HeaderRecord

BufferLike = Union[bytes, bytearray, memoryview]
HeaderLike = Union[HeaderRecord, Tuple[str, str]]

_MAX_U32 = 0xFFFFFFFF

def _as_bytes(buf: BufferLike) -> bytes:
    if isinstance(buf, bytes):
        return buf
    if isinstance(buf, (bytearray, memoryview)):
        return bytes(buf)
    raise TypeError(f"frame buffer must be bytes-like, got {type(buf).__name__}")

def _crc32(data: bytes) -> int:
    return zlib.crc32(data) & _MAX_U32

def _decode_payload(raw: bytes, offset: int) -> Any:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadDecodeError(
            f"payload is not valid UTF-8 ({e.reason})",
            diagnostic=raw.decode("utf-8", errors="replace"),
            offset=offset + e.start,
        ) from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadDecodeError(
            f"payload is not valid JSON: {e.msg} (line {e.lineno} column {e.colno})",
            diagnostic=text,
            offset=offset + len(text[:e.pos].encode("utf-8")),
        ) from e

def _verify_checksums(data: bytes, start: int, total_length: int, prelude_checksum: int) -> None:
    actual = _crc32(data[start:start + 8])
    if actual != prelude_checksum:
        raise ChecksumMismatch(
            f"prelude checksum mismatch: frame says {prelude_checksum:#010x}, computed {actual:#010x}",
            expected=prelude_checksum,
            actual=actual,
            offset=start + 8,
        )

    crc_offset = start + total_length - CHECKSUM_LENGTH
    expected = struct.unpack_from(">I", data, crc_offset)[0]
    actual = _crc32(data[start:crc_offset])
    if actual != expected:
        raise ChecksumMismatch(
            f"message checksum mismatch: frame says {expected:#010x}, computed {actual:#010x}",
            expected=expected,
            actual=actual,
            offset=crc_offset,
        )

def _decode_at(data: bytes, start: int, strict: bool) -> Frame:
    available = len(data) - start
    if available < PRELUDE_LENGTH:
        raise BufferTooShort(
            f"need {PRELUDE_LENGTH} prelude bytes, got {available}",
            offset=start,
        )

    prelude = ByteCursor(data, offset=start, error=BufferTooShort)
    total_length = prelude.read_u32_be("total length")
    headers_length = prelude.read_u32_be("headers length")
    prelude_checksum = prelude.read_u32_be("prelude checksum")

    if total_length < MIN_FRAME_LENGTH:
        raise BufferTooShort(
            f"declared total_length {total_length} is below the {MIN_FRAME_LENGTH}-byte minimum frame",
            offset=start,
        )
    if total_length > available:
        raise BufferTooShort(
            f"declared total_length {total_length} exceeds the {available} byte(s) available",
            offset=start,
        )

    headers_start = start + PRELUDE_LENGTH
    headers_end = headers_start + headers_length
    payload_end = start + total_length - CHECKSUM_LENGTH
    if headers_end > payload_end:
        raise MalformedHeaders(
            f"headers_length {headers_length} does not fit in a frame of {total_length} bytes",
            offset=start + 4,
        )

    if strict:
        _verify_checksums(data, start, total_length, prelude_checksum)

    headers: List[HeaderRecord] = []
    offset = headers_start
    while offset < headers_end:
        record, consumed = parse_header(data, offset, end=headers_end)
        headers.append(record)
        offset += consumed

    payload = _decode_payload(data[headers_end:payload_end], headers_end)

    trailer = ByteCursor(data, offset=payload_end, error=BufferTooShort)
    message_checksum = trailer.read_u32_be("message checksum")

    return Frame(
        total_length=total_length,
        headers_length=headers_length,
        prelude_checksum=prelude_checksum,
        headers=tuple(headers),
        payload=payload,
        message_checksum=message_checksum,
    )

def decode_frame(buf: BufferLike, strict: bool = False) -> Frame:
    """Decode one complete frame from the start of `buf`.

    Raises BufferTooShort, MalformedHeaders/MalformedHeader, PayloadDecodeError,
    and (strict only) ChecksumMismatch.
    """
    return _decode_at(_as_bytes(buf), 0, strict)

def iter_frames(buf: BufferLike, strict: bool = False) -> Iterator[Frame]:
    """Yield every frame of a buffer holding back-to-back frames."""
    data = _as_bytes(buf)
    pos = 0
    while pos < len(data):
        frame = _decode_at(data, pos, strict)
        yield frame
        pos += frame.total_length

def encode_frame(headers: Iterable[HeaderLike] = (), payload: Any = None) -> bytes:
    """Build a frame with both checksums filled in.

    `payload` is serialized as compact JSON unless it is already bytes.
    """
    if isinstance(payload, (bytes, bytearray)):
        body = bytes(payload)
    else:
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    header_bytes = b"".join(encode_header(h) for h in headers)
    total_length = PRELUDE_LENGTH + len(header_bytes) + len(body) + CHECKSUM_LENGTH
    if total_length > _MAX_U32:
        raise ValueError(f"frame too large: {total_length} bytes")

    lengths = struct.pack(">II", total_length, len(header_bytes))
    message = lengths + struct.pack(">I", _crc32(lengths)) + header_bytes + body
    return message + struct.pack(">I", _crc32(message))
