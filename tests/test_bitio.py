from __future__ import annotations

import io
from pathlib import Path

import pytest

from huffcore.core.bitio import BitReader, BitWriter, open_bit_reader, open_bit_writer, packed_size
from huffcore.errors import CorruptBitstream, InputUnreadable, TruncatedBitstream


def _pack(bits: str) -> bytes:
    buf = io.BytesIO()
    w = BitWriter(buf)
    w.write_bits(int(c) for c in bits)
    w.close()
    return buf.getvalue()


def _unpack(blob: bytes, *, chunk_size: int = 64 * 1024) -> str:
    r = BitReader(io.BytesIO(blob), chunk_size=chunk_size)
    out = []
    while r.has_next():
        out.append("1" if r.read_bit() else "0")
    return "".join(out)


def test_writer_layout_msb_first_with_trailer() -> None:
    assert _pack("") == b""
    assert _pack("1") == b"\x80\x01"
    assert _pack("101111000") == b"\xbc\x00\x01"
    assert _pack("11110000") == b"\xf0\x08"
    assert _pack("0000") == b"\x00\x04"


@pytest.mark.parametrize("bits", ["", "0", "1", "10", "1011110", "10111100", "101111001", "1" * 65])
@pytest.mark.parametrize("chunk_size", [1, 2, 3, 4096])
def test_reader_reads_back_exact_bits(bits: str, chunk_size: int) -> None:
    blob = _pack(bits)
    assert len(blob) == packed_size(len(bits))
    assert _unpack(blob, chunk_size=chunk_size) == bits


def test_read_past_end_is_truncated() -> None:
    r = BitReader(io.BytesIO(_pack("10")))
    assert r.read_bit() is True
    assert r.read_bit() is False
    assert r.has_next() is False
    with pytest.raises(TruncatedBitstream):
        r.read_bit()


def test_reader_rejects_bad_trailer() -> None:
    with pytest.raises(CorruptBitstream):
        _unpack(b"\x05")  # solo trailer
    with pytest.raises(CorruptBitstream):
        _unpack(b"\xff\x00")
    with pytest.raises(CorruptBitstream):
        _unpack(b"\xff\x09")


def test_writer_close_is_idempotent_and_final() -> None:
    buf = io.BytesIO()
    w = BitWriter(buf)
    w.write_bit(True)
    w.close()
    w.close()
    assert buf.getvalue() == b"\x80\x01"
    with pytest.raises(ValueError):
        w.write_bit(False)


def test_owned_file_handles(tmp_path: Path) -> None:
    p = tmp_path / "bits.bin"
    with open_bit_writer(p, chunk_size=1) as w:
        w.write_bits([1, 0, 1] * 7)
    assert p.stat().st_size == packed_size(21)

    with open_bit_reader(p) as r:
        got = []
        while r.has_next():
            got.append(int(r.read_bit()))
    assert got == [1, 0, 1] * 7
    assert r.closed


def test_open_missing_file_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(InputUnreadable):
        open_bit_reader(tmp_path / "nope.bin")
