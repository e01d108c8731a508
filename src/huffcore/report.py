"""Compression report for a single input.

Determinism note: the serialized report MUST be identical across runs for
the same input content. We do not embed timestamps or paths, and floats are
rounded.
"""

from __future__ import annotations

import math
from typing import Any

from huffcore.core.baselines import baseline_sizes
from huffcore.core.bitio import packed_size
from huffcore.core.codes import build_code_table, encoded_bit_length, length_histogram
from huffcore.core.freq import count_frequencies
from huffcore.core.symbols import TEXT_ENCODING
from huffcore.core.tree import build_tree, tree_depth
from huffcore.errors import InputUnreadable

REPORT_SCHEMA = "huffcore.report.v1"


def _entropy(freq: dict[Any, int], n: int) -> float:
    if n == 0:
        return 0.0
    h = 0.0
    for f in freq.values():
        p = f / n
        h -= p * math.log2(p)
    return h


def _bytes_h(n: int) -> str:
    if n < 0:
        return str(n)
    units = ["B", "KiB", "MiB", "GiB"]
    f = float(n)
    u = 0
    while f >= 1024.0 and u < len(units) - 1:
        f /= 1024.0
        u += 1
    return f"{int(f)} {units[u]}" if u == 0 else f"{f:.2f} {units[u]}"


def build_report(data: bytes, *, text: bool = False) -> dict[str, Any]:
    if text:
        try:
            symbols: Any = data.decode(TEXT_ENCODING)
        except UnicodeDecodeError as err:
            raise InputUnreadable(f"input non e' UTF-8 valido: {err}") from err
    else:
        symbols = data

    freq = count_frequencies(symbols)
    n = len(symbols)

    if freq:
        root = build_tree(freq)
        table = build_code_table(root)
        bits = encoded_bit_length(freq, table)
        depth = tree_depth(root)
        hist = {str(k): v for k, v in length_histogram(table).items()}
    else:
        bits, depth, hist = 0, 0, {}

    return {
        "schema": REPORT_SCHEMA,
        "mode": "text" if text else "bytes",
        "in_bytes": len(data),
        "symbols": n,
        "distinct": len(freq),
        "huffman_bits": bits,
        "huffman_bytes": packed_size(bits),
        "avg_code_len": round(bits / n, 6) if n else 0.0,
        "entropy_bits": round(_entropy(freq, n), 6),
        "tree_depth": depth,
        "code_lengths": hist,
        "baselines": baseline_sizes(data),
    }


def render_report_text(rep: dict[str, Any]) -> str:
    lines: list[str] = []
    lines.append(f"mode:          {rep['mode']}")
    lines.append(f"input:         {_bytes_h(int(rep['in_bytes']))} ({rep['symbols']} symbols, {rep['distinct']} distinct)")
    lines.append(
        f"huffman:       {_bytes_h(int(rep['huffman_bytes']))} ({rep['huffman_bits']} bits, tree out-of-band)"
    )
    lines.append(f"avg code len:  {rep['avg_code_len']:.4f} bits/symbol")
    lines.append(f"entropy:       {rep['entropy_bits']:.4f} bits/symbol")
    lines.append(f"tree depth:    {rep['tree_depth']}")
    if rep["code_lengths"]:
        hist = ", ".join(f"{k}:{v}" for k, v in rep["code_lengths"].items())
        lines.append(f"code lengths:  {hist}")
    for cid, size in rep["baselines"].items():
        shown = "n/a (not installed)" if size is None else _bytes_h(int(size))
        lines.append(f"{cid + ':':<15}{shown}")
    return "\n".join(lines) + "\n"
