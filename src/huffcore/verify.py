"""Verification helpers.

We implement:
  - tree spec verify: full-tree invariant, frequency conservation, metadata
  - file verify: tree spec + packed bit file consistency

Policy: light by default, --full decodes and recomputes the sha256.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from huffcore.config import chunk_size_from_env
from huffcore.core.bitio import open_bit_reader, packed_size
from huffcore.core.codec_huffman import decompress
from huffcore.core.codes import build_code_table, encoded_bit_length
from huffcore.core.symbols import TEXT_ENCODING, SymbolSink
from huffcore.core.tree import check_tree, tree_frequencies
from huffcore.errors import CorruptBitstream, CorruptPayload, HashMismatch, InputUnreadable
from huffcore.files import default_tree_path
from huffcore.tree_spec import TreeSpecV1, load_tree_spec


class _HashWriter:
    """File-like sink that only hashes what it receives."""

    def __init__(self, *, text: bool):
        self._text = text
        self.h = hashlib.sha256()

    def write(self, data: bytes | str) -> None:
        self.h.update(data.encode(TEXT_ENCODING) if self._text else data)  # type: ignore[union-attr]

    def flush(self) -> None:
        pass


def _size(p: Path) -> int:
    try:
        return p.stat().st_size
    except OSError as err:
        raise InputUnreadable(f"stat fallita per {p}: {err}") from err


def _last_byte(p: Path) -> int:
    try:
        with p.open("rb") as f:
            f.seek(-1, 2)
            return f.read(1)[0]
    except OSError as err:
        raise InputUnreadable(f"impossibile leggere il trailer di {p}: {err}") from err


def verify_tree_spec(spec: TreeSpecV1) -> None:
    if spec.root is None:
        if spec.n_symbols not in (None, 0) or spec.n_bits not in (None, 0):
            raise CorruptPayload("tree spec vuoto con n_symbols/n_bits non nulli")
        return

    check_tree(spec.root)

    if spec.n_symbols is not None and spec.n_symbols != spec.root.freq:
        raise CorruptPayload(
            f"n_symbols={spec.n_symbols} ma la radice conta {spec.root.freq} simboli"
        )
    if spec.n_bits is not None:
        table = build_code_table(spec.root)
        want = encoded_bit_length(tree_frequencies(spec.root), table)
        if spec.n_bits != want:
            raise CorruptPayload(f"n_bits={spec.n_bits} ma l'albero implica {want} bit")


def verify_compressed_file(
    path: str | Path, *, tree_path: str | Path | None = None, full: bool = False
) -> TreeSpecV1:
    p = Path(path)
    if not p.is_file():
        raise InputUnreadable(f"file non trovato: {p}")
    tp = Path(tree_path) if tree_path is not None else default_tree_path(p)

    spec = load_tree_spec("@" + str(tp))
    verify_tree_spec(spec)

    size = _size(p)
    if spec.root is None:
        if size != 0:
            raise CorruptBitstream(f"tree spec vuoto ma bitstream di {size} byte")
        return spec

    if spec.n_bits is not None:
        want = packed_size(spec.n_bits)
        if size != want:
            raise CorruptBitstream(f"dimensione bitstream {size} != attesa {want}")
        trailer = _last_byte(p)
        want_trailer = spec.n_bits % 8 or 8
        if trailer != want_trailer:
            raise CorruptBitstream(f"trailer {trailer} != atteso {want_trailer}")

    if full:
        sink_fp = _HashWriter(text=spec.mode == "text")
        n = decompress(
            open_bit_reader(p, chunk_size=chunk_size_from_env()),
            spec.root,
            SymbolSink(sink_fp, text=spec.mode == "text"),
        )
        if spec.n_symbols is not None and n != spec.n_symbols:
            raise CorruptBitstream(f"attesi {spec.n_symbols} simboli, decodificati {n}")
        if spec.sha256 is not None and sink_fp.h.hexdigest() != spec.sha256:
            raise HashMismatch(f"sha256 dei dati decodificati non corrisponde: {p}")

    return spec
