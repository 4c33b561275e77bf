# tests/codec/test_artifact_codec.py
import io
import zlib

import numpy as np
import pytest

from proctrain.codec.artifact_codec import (
    MemoryBuffer,
    compress_stream,
    embed_weights,
    headroom,
)
from proctrain.utils.errors import BufferOverflowError, IoError


def test_headroom():
    assert headroom(0) == 128
    assert headroom(3200) == 3200 + 100 + 128


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"hello weights",
        b"<Weights>\n" + b"0.125 0.5 -1.75\n" * 5000,
        np.random.default_rng(0).bytes(200_000),   # 不可压缩
    ],
    ids=["empty", "small", "text", "random"],
)
def test_embed_roundtrip(tmp_path, data):
    path = tmp_path / "w.weights.txt"
    path.write_bytes(data)

    calib = embed_weights(path, method="BDTG", variables=["x", "y"])

    assert zlib.decompress(calib.payload) == data
    assert calib.method == "BDTG"
    assert calib.variables == ["x", "y"]


def test_undersized_buffer_is_fatal(tmp_path):
    path = tmp_path / "w.weights.txt"
    path.write_bytes(np.random.default_rng(1).bytes(1000))

    with pytest.raises(BufferOverflowError):
        embed_weights(path, method="m", variables=[], capacity=16)


def test_overflow_is_an_io_error():
    with pytest.raises(IoError):
        compress_stream(io.BytesIO(b"x" * 100), capacity=4)


def test_missing_file(tmp_path):
    with pytest.raises(IoError, match="cannot be opened"):
        embed_weights(tmp_path / "nope.txt", method="m", variables=[])


def test_memory_buffer_never_truncates():
    buf = MemoryBuffer(4)
    buf.write(b"ab")
    with pytest.raises(BufferOverflowError):
        buf.write(b"cde")

    assert buf.getvalue() == b"ab"
    assert len(buf) == 2


def test_record_shape(tmp_path):
    path = tmp_path / "w.txt"
    path.write_bytes(b"abc")
    record = embed_weights(path, method="m", variables=["a"]).to_record()

    assert record["type"] == "ProcExternal"
    assert set(record) == {"type", "method", "variables", "payload"}
