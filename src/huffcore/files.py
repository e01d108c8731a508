"""File-level pipeline: analyze -> build tree -> code table -> transform.

Every call is an independent unit of work (no module-level state), so many
files can be processed in parallel by the caller.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from huffcore.config import chunk_size_from_env
from huffcore.core.bitio import open_bit_reader, open_bit_writer
from huffcore.core.codec_huffman import compress, decompress
from huffcore.core.codes import build_code_table, encoded_bit_length
from huffcore.core.freq import count_frequencies
from huffcore.core.symbols import iter_file_symbols, open_symbol_sink
from huffcore.core.tree import build_tree, check_tree
from huffcore.errors import (
    CorruptBitstream,
    HuffcoreError,
    InputUnreadable,
    ResourceReleaseError,
)
from huffcore.tree_spec import TreeSpecV1, load_tree_spec, write_tree_spec

TREE_SUFFIX = ".tree.json"


@dataclass(frozen=True)
class FileResult:
    input: Path
    output: Path
    tree: Path
    mode: str
    n_symbols: int
    n_bits: int
    in_size: int
    out_size: int


def default_tree_path(compressed: str | Path) -> Path:
    p = Path(compressed)
    return p.with_name(p.name + TREE_SUFFIX)


def _size(p: Path) -> int:
    try:
        return p.stat().st_size
    except OSError as err:
        raise InputUnreadable(f"stat fallita per {p}: {err}") from err


def _discard(paths: list[Path], err: BaseException) -> None:
    for p in paths:
        try:
            p.unlink(missing_ok=True)
        except OSError as e:
            err.add_note(f"inoltre, impossibile rimuovere {p}: {e!r}")


def compress_file(
    input_path: str | Path,
    output_path: str | Path,
    *,
    tree_path: str | Path | None = None,
    text: bool = False,
    chunk_size: int | None = None,
) -> FileResult:
    """Compress ``input_path`` into a packed bit file plus a tree spec.

    The input is read twice: the first pass counts frequencies and hashes the
    raw bytes, the second encodes. If the file changes in between, the encode
    pass hits an unknown symbol or a bit count that the first pass does not
    predict; either way the call fails and no output pair is left behind.

    Empty input -> empty output and a tree spec with no nodes.
    """
    src = Path(input_path)
    dst = Path(output_path)
    tp = Path(tree_path) if tree_path is not None else default_tree_path(dst)
    chunk = chunk_size or chunk_size_from_env()
    mode = "text" if text else "bytes"

    digest = hashlib.sha256()
    freq = count_frequencies(iter_file_symbols(src, text=text, chunk_size=chunk, digest=digest))
    root = build_tree(freq) if freq else None

    try:
        if root is None:
            open_bit_writer(dst, chunk_size=chunk).close()
            n_bits = 0
        else:
            table = build_code_table(root)
            n_bits = compress(
                iter_file_symbols(src, text=text, chunk_size=chunk),
                table,
                open_bit_writer(dst, chunk_size=chunk),
            )
            want = encoded_bit_length(freq, table)
            if n_bits != want:
                raise InputUnreadable(
                    f"{src} modificato durante la compressione: {n_bits} bit, attesi {want}"
                )
    except HuffcoreError as err:
        # il tree spec di un run precedente non descrive piu' l'output
        stale = [tp] if isinstance(err, ResourceReleaseError) else [tp, dst]
        _discard(stale, err)
        raise

    n_symbols = root.freq if root is not None else 0
    write_tree_spec(
        tp,
        TreeSpecV1(
            mode=mode, root=root, n_symbols=n_symbols, n_bits=n_bits, sha256=digest.hexdigest()
        ),
    )
    return FileResult(
        input=src,
        output=dst,
        tree=tp,
        mode=mode,
        n_symbols=n_symbols,
        n_bits=n_bits,
        in_size=_size(src),
        out_size=_size(dst),
    )


def decompress_file(
    input_path: str | Path,
    output_path: str | Path,
    *,
    tree_path: str | Path | None = None,
    chunk_size: int | None = None,
) -> FileResult:
    """Decode a packed bit file with the tree spec it was encoded with.

    On a decoding error the partial output file is removed.
    """
    src = Path(input_path)
    dst = Path(output_path)
    tp = Path(tree_path) if tree_path is not None else default_tree_path(src)
    chunk = chunk_size or chunk_size_from_env()

    spec = load_tree_spec("@" + str(tp))
    text = spec.mode == "text"

    if spec.root is None:
        if _size(src) != 0:
            raise CorruptBitstream(f"tree spec vuoto ma bitstream non vuoto: {src}")
        open_symbol_sink(dst, text=text, chunk_size=chunk).close()
        return FileResult(src, dst, tp, spec.mode, 0, 0, 0, _size(dst))

    check_tree(spec.root)

    reader = open_bit_reader(src, chunk_size=chunk)
    try:
        sink = open_symbol_sink(dst, text=text, chunk_size=chunk)
    except BaseException:
        reader.close()
        raise

    try:
        n = decompress(reader, spec.root, sink)
        if spec.n_symbols is not None and n != spec.n_symbols:
            raise CorruptBitstream(f"attesi {spec.n_symbols} simboli, decodificati {n}")
    except ResourceReleaseError:
        raise
    except HuffcoreError as err:
        _discard([dst], err)
        raise

    return FileResult(
        input=src,
        output=dst,
        tree=tp,
        mode=spec.mode,
        n_symbols=n,
        n_bits=reader.bits_read,
        in_size=_size(src),
        out_size=_size(dst),
    )
