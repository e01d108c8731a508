from __future__ import annotations

import io
import random
from pathlib import Path

import pytest

from huffcore.core.bitio import BitReader, BitWriter
from huffcore.core.codec_huffman import (
    CodecHuffman,
    compress,
    decode_symbols,
    decompress,
    encode_symbols,
)
from huffcore.core.codes import build_code_table
from huffcore.core.freq import count_frequencies
from huffcore.core.symbols import SymbolSink, iter_file_symbols
from huffcore.core.tree import build_tree
from huffcore.errors import (
    CorruptBitstream,
    ResourceReleaseError,
    TruncatedBitstream,
    UnknownSymbol,
)


class _CloseFails(io.BytesIO):
    """BytesIO whose first close() releases the buffer and then fails."""

    def __init__(self) -> None:
        super().__init__()
        self._boom_done = False

    def close(self) -> None:
        if self._boom_done:
            return
        self._boom_done = True
        super().close()
        raise OSError("disk gone")


def _pipeline(symbols):
    root = build_tree(count_frequencies(symbols))
    return root, build_code_table(root)


@pytest.mark.p0
def test_abbccc_end_to_end() -> None:
    root, table = _pipeline("abbccc")
    buf = io.BytesIO()
    nbits = compress("abbccc", table, BitWriter(buf))
    assert nbits == 9
    # c=0 a=10 b=11 -> 10 11 11 0 0 0
    assert buf.getvalue() == b"\xbc\x00\x01"

    out = io.StringIO()
    n = decompress(BitReader(io.BytesIO(buf.getvalue())), root, SymbolSink(out, text=True))
    assert n == 6
    assert out.getvalue() == "abbccc"


def test_single_symbol_roundtrip() -> None:
    root, table = _pipeline("aaaa")
    blob = encode_symbols("aaaa", table)
    assert blob == b"\x00\x04"
    assert decode_symbols(blob, root) == list("aaaa")


def test_single_symbol_rejects_one_bit() -> None:
    root, _ = _pipeline("aaaa")
    with pytest.raises(CorruptBitstream):
        decode_symbols(b"\x40\x02", root)  # bit "01"


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_roundtrip_random_bytes(seed: int) -> None:
    rnd = random.Random(seed)
    data = bytes(rnd.choice(b"aaaaabbbcde\x00\xff") for _ in range(5000))
    codec = CodecHuffman()
    root, blob = codec.compress_bytes(data)
    assert root is not None
    assert root.freq == len(data)
    assert codec.decompress_bytes(blob, root) == data


def test_codec_empty_input() -> None:
    codec = CodecHuffman()
    root, blob = codec.compress_bytes(b"")
    assert root is None
    assert blob == b""
    assert codec.decompress_bytes(b"", None) == b""
    with pytest.raises(CorruptBitstream):
        codec.decompress_bytes(b"\x80\x01", None)


def test_unknown_symbol_aborts_and_closes_writer() -> None:
    _, table = _pipeline("ab")
    w = BitWriter(io.BytesIO())
    with pytest.raises(UnknownSymbol) as ei:
        compress("abz", table, w)
    assert isinstance(ei.value, LookupError)
    assert ei.value.symbol == "z"
    assert ei.value.position == 2
    assert w.closed


def test_truncated_bitstream_mid_codeword() -> None:
    root, _ = _pipeline("abbccc")
    # "1" da solo: a meta' tra a=10 e b=11
    with pytest.raises(TruncatedBitstream):
        decode_symbols(b"\x80\x01", root)

    out = io.StringIO()
    reader = BitReader(io.BytesIO(b"\x80\x01"))
    sink = SymbolSink(out, text=True)
    with pytest.raises(TruncatedBitstream):
        decompress(reader, root, sink)
    assert reader.closed and sink.closed
    assert out.getvalue() == ""


def test_close_failure_after_success_reports_result() -> None:
    _, table = _pipeline("abbccc")
    w = BitWriter(_CloseFails(), owns_fp=True)
    with pytest.raises(ResourceReleaseError) as ei:
        compress("abbccc", table, w)
    assert ei.value.result == 9
    assert isinstance(ei.value.__cause__, OSError)


@pytest.mark.p0
def test_close_failure_does_not_mask_transform_error() -> None:
    _, table = _pipeline("ab")
    w = BitWriter(_CloseFails(), owns_fp=True)
    with pytest.raises(UnknownSymbol) as ei:
        compress("aXb", table, w)
    notes = getattr(ei.value, "__notes__", [])
    assert any("disk gone" in n for n in notes)


def test_decompress_bytes_sink() -> None:
    data = b"mississippi river"
    root, table = _pipeline(data)
    blob = encode_symbols(data, table)
    out = io.BytesIO()
    n = decompress(BitReader(io.BytesIO(blob)), root, SymbolSink(out, chunk_size=3))
    assert n == len(data)
    assert out.getvalue() == data


def test_unknown_symbol_releases_file_source(tmp_path: Path) -> None:
    p = tmp_path / "in.txt"
    p.write_bytes(b"abz" * 10)
    _, table = _pipeline(b"ab")

    gen = iter_file_symbols(p)
    w = BitWriter(io.BytesIO())
    with pytest.raises(UnknownSymbol):
        compress(gen, table, w)
    # generatore chiuso: il file sottostante e' stato rilasciato
    assert gen.gi_frame is None
    assert w.closed
