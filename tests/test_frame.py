import struct
import zlib

import pytest

from bedrock_eventstream.errors import (
    BufferTooShort,
    ChecksumMismatch,
    MalformedHeader,
    MalformedHeaders,
    PayloadDecodeError,
)
from bedrock_eventstream.frame import decode_frame, encode_frame, iter_frames
from bedrock_eventstream.headers import encode_header

HEADERS = [
    (":event-type", "trace"),
    (":content-type", "application/json"),
    (":message-type", "event"),
]


def test_decode_hand_built_frame():
    hdr = b"\x0b:event-type\x07\x00\x05trace"
    payload = b'{"a":1}'
    total = 12 + len(hdr) + len(payload) + 4
    buf = struct.pack(">III", total, len(hdr), 0) + hdr + payload + struct.pack(">I", 0xDEADBEEF)

    f = decode_frame(buf)
    assert f.total_length == total
    assert f.headers_length == len(hdr)
    assert f.prelude_checksum == 0
    assert f.message_checksum == 0xDEADBEEF
    assert [(h.name, h.value) for h in f.headers] == [(":event-type", "trace")]
    assert f.payload == {"a": 1}


def test_round_trip_headers_and_payload():
    payload = {"trace": {"x": [1, 2.5, None, True]}, "u": "héllo"}
    buf = encode_frame(HEADERS, payload)

    f = decode_frame(buf)
    assert [(h.name, h.value) for h in f.headers] == HEADERS
    assert f.payload == payload
    assert f.total_length == len(buf)
    assert 12 + f.headers_length + f.payload_length + 4 == f.total_length
    assert f.event_type == "trace"
    assert f.message_type == "event"
    assert f.content_type == "application/json"
    assert f.header("missing", "dflt") == "dflt"
    assert f.headers_dict()[":event-type"] == "trace"


def test_decoded_headers_are_immutable():
    f = decode_frame(encode_frame([("a", "b")], {}))
    assert isinstance(f.headers, tuple)
    with pytest.raises(AttributeError):
        f.headers.append(None)
    assert len(f.headers) == 1


def test_decode_is_idempotent():
    buf = encode_frame(HEADERS, {"k": "v"})
    assert decode_frame(buf) == decode_frame(buf)


def test_accepts_bytearray_and_memoryview():
    buf = encode_frame(HEADERS, [1, 2, 3])
    assert decode_frame(bytearray(buf)).payload == [1, 2, 3]
    assert decode_frame(memoryview(buf)).payload == [1, 2, 3]


def test_rejects_non_bytes():
    with pytest.raises(TypeError):
        decode_frame("not bytes")


def test_frame_without_headers():
    f = decode_frame(encode_frame([], [1, 2]))
    assert f.headers == ()
    assert f.headers_length == 0
    assert f.payload == [1, 2]


def test_buffer_shorter_than_prelude():
    buf = encode_frame(HEADERS, {})
    for n in range(12):
        with pytest.raises(BufferTooShort):
            decode_frame(buf[:n])


def test_declared_total_length_exceeds_buffer():
    buf = encode_frame(HEADERS, {"a": 1})
    with pytest.raises(BufferTooShort) as ei:
        decode_frame(buf[:-1])
    assert ei.value.stage == "prelude"


def test_total_length_below_minimum_frame():
    with pytest.raises(BufferTooShort):
        decode_frame(struct.pack(">III", 8, 0, 0))


def test_headers_length_larger_than_frame():
    buf = bytearray(encode_frame([], {"a": 1}))
    struct.pack_into(">I", buf, 4, 1000)
    with pytest.raises(MalformedHeaders):
        decode_frame(buf)


def test_header_overshooting_headers_length():
    hdr = encode_header(("k", "value"))
    headers_length = len(hdr) - 2
    total = 12 + len(hdr) + 2 + 4
    buf = struct.pack(">III", total, headers_length, 0) + hdr + b"{}" + struct.pack(">I", 0)
    with pytest.raises(MalformedHeader):
        decode_frame(buf)


def test_trailing_byte_in_header_section():
    hdr = encode_header(("k", "value")) + b"\x01"
    total = 12 + len(hdr) + 2 + 4
    buf = struct.pack(">III", total, len(hdr), 0) + hdr + b"{}" + struct.pack(">I", 0)
    with pytest.raises(MalformedHeaders):
        decode_frame(buf)


def test_invalid_json_payload():
    with pytest.raises(PayloadDecodeError) as ei:
        decode_frame(encode_frame([], b"{invalid"))
    assert ei.value.diagnostic == "{invalid"
    assert ei.value.offset == 13


def test_json_error_offset_points_at_failing_byte():
    # "\u00e9" is two bytes on the wire, so the bad token sits one byte later than its char index
    with pytest.raises(PayloadDecodeError) as ei:
        decode_frame(encode_frame([], "{\"\u00e9\": x}".encode("utf-8")))
    assert ei.value.offset == 12 + 7


def test_invalid_utf8_payload():
    with pytest.raises(PayloadDecodeError) as ei:
        decode_frame(encode_frame([], b'"\xff"'))
    assert ei.value.offset == 13


def test_empty_payload_is_not_json():
    with pytest.raises(PayloadDecodeError):
        decode_frame(encode_frame(HEADERS, b""))


def test_checksums_match_crc32():
    buf = encode_frame(HEADERS, {"a": 1})
    f = decode_frame(buf)
    assert f.prelude_checksum == zlib.crc32(buf[:8])
    assert f.message_checksum == zlib.crc32(buf[:-4])
    assert f.message_checksum == struct.unpack(">I", buf[-4:])[0]


def test_corrupted_frame_accepted_unless_strict():
    buf = bytearray(encode_frame(HEADERS, {"a": 1}))
    # payload is {"a":1}; turn the 1 into a 2
    buf[len(buf) - 4 - 2] = ord("2")

    assert decode_frame(buf).payload == {"a": 2}
    with pytest.raises(ChecksumMismatch) as ei:
        decode_frame(buf, strict=True)
    assert ei.value.offset == len(buf) - 4
    assert ei.value.expected != ei.value.actual


def test_strict_prelude_mismatch():
    buf = bytearray(encode_frame(HEADERS, {"a": 1}))
    struct.pack_into(">I", buf, 8, 0)
    with pytest.raises(ChecksumMismatch) as ei:
        decode_frame(buf, strict=True)
    assert ei.value.offset == 8


def test_strict_accepts_encoder_output():
    assert decode_frame(encode_frame(HEADERS, {"a": 1}), strict=True).payload == {"a": 1}


def test_bytes_after_frame_are_ignored():
    buf = encode_frame(HEADERS, {"a": 1})
    assert decode_frame(buf + b"junk").payload == {"a": 1}


def test_iter_frames_yields_all_in_order():
    buf = b"".join(encode_frame(HEADERS, {"n": i}) for i in range(3))
    assert [f.payload["n"] for f in iter_frames(buf, strict=True)] == [0, 1, 2]


def test_iter_frames_truncated_tail():
    first = encode_frame(HEADERS, {"n": 0})
    second = encode_frame(HEADERS, {"n": 1})
    it = iter_frames(first + second[:10])
    assert next(it).payload == {"n": 0}
    with pytest.raises(BufferTooShort) as ei:
        next(it)
    assert ei.value.offset == len(first)


def test_iter_frames_empty_buffer():
    assert list(iter_frames(b"")) == []
