# proctrain/codec/artifact_codec.py
from __future__ import annotations

import os
import zlib
from pathlib import Path
from typing import BinaryIO, Sequence

from proctrain import logs
from proctrain.calibration.artifacts import EmbeddedCalibration
from proctrain.utils.errors import BufferOverflowError, IoError

CHUNK_SIZE = 64 * 1024


def headroom(size: int) -> int:
    """
    Buffer capacity for compressing `size` bytes in one pass.
    Covers deflate's worst-case expansion plus the zlib header / trailer.
    """
    return size + size // 32 + 128


class MemoryBuffer:
    """
    Fixed-capacity output buffer. Never grows, never truncates.
    """

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._buf = bytearray(capacity)
        self._pos = 0

    def __len__(self) -> int:
        return self._pos

    def write(self, data: bytes) -> int:
        end = self._pos + len(data)
        if end > self.capacity:
            raise BufferOverflowError(
                f"[MemoryBuffer] {end} bytes exceed capacity {self.capacity}"
            )
        self._buf[self._pos:end] = data
        self._pos = end
        return len(data)

    def getvalue(self) -> bytes:
        return bytes(self._buf[: self._pos])


def compress_stream(
    stream: BinaryIO,
    capacity: int,
    *,
    level: int = zlib.Z_BEST_COMPRESSION,
    chunk_size: int = CHUNK_SIZE,
) -> bytes:
    """
    Stream `stream` through zlib into a buffer of `capacity` bytes.
    The result is a standard zlib stream (zlib.decompress inverts it).
    """
    out = MemoryBuffer(capacity)
    z = zlib.compressobj(level)

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        out.write(z.compress(chunk))

    out.write(z.flush())
    return out.getvalue()


def embed_weights(
    path: Path | str,
    *,
    method: str,
    variables: Sequence[str],
    capacity: int | None = None,
) -> EmbeddedCalibration:
    """
    Pack an external weights description into an EmbeddedCalibration.

    capacity:
      None → headroom(file size)
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            if capacity is None:
                capacity = headroom(size)
            payload = compress_stream(f, capacity)
    except OSError as e:
        raise IoError(
            f"Weights file {path} cannot be opened for reading: {e}"
        ) from e

    logs.debug(
        f"[ArtifactCodec] {path.name}: {size} → {len(payload)} bytes "
        f"(capacity={capacity})"
    )

    return EmbeddedCalibration(
        method=method,
        variables=list(variables),
        payload=payload,
    )
