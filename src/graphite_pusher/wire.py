"""Carbon pickle-protocol framing.

A frame is a 4-byte length header followed by a pickle protocol 2 payload
holding a list of ``(path, (timestamp, value))`` tuples, which is what
carbon's pickle receiver unpickles. The payload is emitted opcode by opcode
rather than via :func:`pickle.dumps` so that its size is known up front and
its byte layout is fixed.

See https://graphite.readthedocs.io/en/latest/feeding-carbon.html#the-pickle-protocol
"""

from __future__ import annotations

import io
import pickle
import struct
from typing import Iterator, Sequence

from .errors import EncodingInvariantError
from .sample import Sample

# pickle opcodes (Lib/pickle.py)
PROTO = b"\x80"
EMPTY_LIST = b"]"
BINPUT = b"q"
BINUNICODE = b"X"
BININT = b"J"
BINFLOAT = b"G"
TUPLE2 = b"\x86"
APPEND = b"a"
STOP = b"."

HEADER_SIZE = 4
# PROTO 2 + EMPTY_LIST + STOP
PAYLOAD_OVERHEAD = 4
# every opcode and fixed-width field of one sample, excluding the path bytes
SAMPLE_OVERHEAD = 30

# carbon's pickle receiver drops frames above this size
DEFAULT_MAX_PAYLOAD = 1 << 20

_UINT32 = struct.Struct("<I")
_TIMESTAMP = struct.Struct("<i")
_VALUE = struct.Struct(">d")


def _path_bytes(path: str) -> bytes:
    # same error handler pickle uses for BINUNICODE
    return path.encode("utf-8", "surrogatepass")


def payload_size(batch: Sequence[Sample]) -> int:
    """Return the exact payload length :func:`encode` will emit for *batch*."""
    size = PAYLOAD_OVERHEAD
    for sample in batch:
        size += SAMPLE_OVERHEAD + len(_path_bytes(sample.path))
    return size


def encode_header(length: int) -> bytes:
    """Encode *length* as the collector's 4-byte header.

    The bytes are bits 32-39, 16-23, 8-15 and 0-7 of the length, in that
    order. For any length below 16 MiB this is identical to a big-endian
    32-bit integer.
    """
    return bytes((
        (length >> 32) & 0xFF,
        (length >> 16) & 0xFF,
        (length >> 8) & 0xFF,
        length & 0xFF,
    ))


def decode_header(header: bytes) -> int:
    """Inverse of :func:`encode_header`."""
    if len(header) != HEADER_SIZE:
        raise ValueError(f"header must be {HEADER_SIZE} bytes, got {len(header)}")
    return (header[0] << 32) | (header[1] << 16) | (header[2] << 8) | header[3]


def encode(batch: Sequence[Sample]) -> bytes:
    """Serialize *batch* into a single frame (header + payload).

    Raises :class:`EncodingInvariantError` if the emitted payload disagrees
    with the precomputed size or with what the header decodes to.
    """
    expected = payload_size(batch)
    header = encode_header(expected)

    buf = io.BytesIO()
    buf.write(header)
    buf.write(PROTO + b"\x02")
    buf.write(EMPTY_LIST)

    for sample in batch:
        path = _path_bytes(sample.path)
        buf.write(BINPUT + b"\x00")
        buf.write(BINUNICODE + _UINT32.pack(len(path)) + path)
        buf.write(BINPUT + b"\x01")
        buf.write(BININT + _TIMESTAMP.pack(sample.timestamp))
        buf.write(BINFLOAT + _VALUE.pack(sample.value))
        buf.write(TUPLE2 + BINPUT + b"\x02")
        buf.write(TUPLE2 + BINPUT + b"\x03")
        buf.write(APPEND)

    buf.write(STOP)

    frame = buf.getvalue()
    emitted = len(frame) - HEADER_SIZE
    if emitted != expected:
        raise EncodingInvariantError(
            f"emitted {emitted} payload bytes, precomputed {expected}"
        )
    if decode_header(header) != emitted:
        raise EncodingInvariantError(
            f"header decodes to {decode_header(header)} for a {emitted}-byte payload"
        )
    return frame


def split_batch(
    batch: Sequence[Sample], max_payload: int = DEFAULT_MAX_PAYLOAD,
) -> Iterator[list[Sample]]:
    """Yield consecutive slices of *batch* that each fit one frame.

    Each slice's payload stays within *max_payload* bytes unless a single
    sample alone exceeds it, in which case that sample gets a slice of its own.
    """
    chunk: list[Sample] = []
    size = PAYLOAD_OVERHEAD
    for sample in batch:
        cost = SAMPLE_OVERHEAD + len(_path_bytes(sample.path))
        if chunk and size + cost > max_payload:
            yield chunk
            chunk = []
            size = PAYLOAD_OVERHEAD
        chunk.append(sample)
        size += cost
    if chunk:
        yield chunk


def encode_frames(
    batch: Sequence[Sample], max_payload: int = DEFAULT_MAX_PAYLOAD,
) -> Iterator[bytes]:
    """Yield the frames for *batch* in order, split as by :func:`split_batch`."""
    for chunk in split_batch(batch, max_payload):
        yield encode(chunk)


class _FrameUnpickler(pickle.Unpickler):
    """Unpickler that refuses to resolve any global."""

    def find_class(self, module: str, name: str) -> None:
        raise pickle.UnpicklingError(f"global {module}.{name} is not allowed in a frame")


def decode_payload(payload: bytes) -> list[Sample]:
    """Decode a pickle payload (without header) back into samples."""
    data = _FrameUnpickler(io.BytesIO(payload)).load()
    if not isinstance(data, list):
        raise ValueError(f"payload is a {type(data).__name__}, expected list")

    samples: list[Sample] = []
    for item in data:
        try:
            path, (timestamp, value) = item
            samples.append(Sample(path, timestamp, value))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"malformed datapoint {item!r}") from exc
    return samples


def decode(frame: bytes) -> list[Sample]:
    """Decode exactly one frame."""
    length = decode_header(frame[:HEADER_SIZE])
    payload = frame[HEADER_SIZE:]
    if len(payload) != length:
        raise ValueError(f"header announces {length} bytes, frame carries {len(payload)}")
    return decode_payload(payload)


def iter_frames(data: bytes) -> Iterator[list[Sample]]:
    """Decode a captured stream of back-to-back frames."""
    offset = 0
    while offset < len(data):
        if len(data) - offset < HEADER_SIZE:
            raise ValueError(f"truncated header at offset {offset}")
        length = decode_header(data[offset:offset + HEADER_SIZE])
        start = offset + HEADER_SIZE
        end = start + length
        if end > len(data):
            raise ValueError(f"truncated payload at offset {offset}")
        yield decode_payload(data[start:end])
        offset = end
