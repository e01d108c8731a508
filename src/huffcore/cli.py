"""huffcore CLI.

This is the stable CLI entrypoint (console-script: ``huffcore``).

The tree is never stored inside the compressed file: ``compress`` writes it
to a separate tree spec (default ``<output>.tree.json``) and ``decompress`` /
``verify`` read it back from there (or from ``--tree``).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from huffcore.config import verbose_from_env
from huffcore.core.codes import build_code_table, format_code
from huffcore.errors import EXIT_GENERIC, EXIT_USAGE, HuffcoreError, render_exit_codes_markdown


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")


def _say(msg: str) -> None:
    print(f"[huffcore] {msg}", file=sys.stderr)


def _ratio(out_size: int, in_size: int) -> str:
    return f"{out_size / in_size:.3f}" if in_size else "n/a"


def _cmd_compress(input_path: Path, output_path: Path, tree_path: Path | None, *, text: bool) -> int:
    from huffcore.files import compress_file

    res = compress_file(input_path, output_path, tree_path=tree_path, text=text)
    if verbose_from_env():
        _say(
            f"compress: {res.n_symbols} symbols -> {res.n_bits} bits "
            f"({res.in_size} -> {res.out_size} bytes, ratio={_ratio(res.out_size, res.in_size)}), "
            f"tree -> {res.tree}"
        )
    return 0


def _cmd_decompress(input_path: Path, output_path: Path, tree_path: Path | None) -> int:
    from huffcore.files import decompress_file

    res = decompress_file(input_path, output_path, tree_path=tree_path)
    if verbose_from_env():
        _say(f"decompress: {res.n_bits} bits -> {res.n_symbols} symbols ({res.out_size} bytes)")
    return 0


def _cmd_verify(input_path: Path, tree_path: Path | None, *, full: bool) -> int:
    from huffcore.verify import verify_compressed_file

    verify_compressed_file(input_path, tree_path=tree_path, full=full)
    print("OK")
    return 0


def _show_symbol(sym: object, mode: str) -> str:
    if mode == "bytes" and isinstance(sym, int):
        ch = chr(sym)
        return f"0x{sym:02x} {ch!r}" if ch.isprintable() else f"0x{sym:02x}"
    return repr(sym)


def _cmd_codes(tree_arg: str) -> int:
    from huffcore.tree_spec import load_tree_spec

    spec = load_tree_spec(tree_arg)
    if spec.root is None:
        print("(empty tree)")
        return 0

    from huffcore.core.tree import tree_frequencies

    freq = tree_frequencies(spec.root)
    table = build_code_table(spec.root)
    rows = sorted(table.items(), key=lambda kv: (len(kv[1]), kv[1]))
    for sym, code in rows:
        print(f"{_show_symbol(sym, spec.mode)}\t{freq[sym]}\t{format_code(code)}")
    return 0


def _cmd_report(input_path: Path, *, text: bool, as_json: bool) -> int:
    from huffcore.errors import InputUnreadable
    from huffcore.report import build_report, render_report_text

    try:
        data = input_path.read_bytes()
    except OSError as err:
        raise InputUnreadable(f"impossibile leggere {input_path}: {err}") from err

    rep = build_report(data, text=text)
    if as_json:
        print(json.dumps(rep, ensure_ascii=False, sort_keys=True))
    else:
        sys.stdout.write(render_report_text(rep))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="huffcore", description="Huffman prefix-code compressor")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_c = sub.add_parser("compress", help="Compress a file (tree written out-of-band)")
    p_c.add_argument("input", type=Path)
    p_c.add_argument("output", type=Path)
    p_c.add_argument(
        "--tree",
        type=Path,
        default=None,
        help="Where to write the tree spec (default: <output>.tree.json)",
    )
    p_c.add_argument(
        "--text",
        action="store_true",
        help="Symbols are UTF-8 characters instead of bytes",
    )
    _add_common_args(p_c)

    p_d = sub.add_parser("decompress", help="Decompress a file with its tree spec")
    p_d.add_argument("input", type=Path)
    p_d.add_argument("output", type=Path)
    p_d.add_argument(
        "--tree",
        type=Path,
        default=None,
        help="Tree spec to decode with (default: <input>.tree.json)",
    )
    _add_common_args(p_d)

    p_v = sub.add_parser("verify", help="Verify a compressed file against its tree spec")
    p_v.add_argument("input", type=Path)
    p_v.add_argument("--tree", type=Path, default=None, help="Tree spec (default: <input>.tree.json)")
    p_v.add_argument("--full", action="store_true", help="Decode and check sha256")
    _add_common_args(p_v)

    p_k = sub.add_parser("codes", help="Print the code table of a tree spec")
    p_k.add_argument("tree", help="Tree spec JSON (@file.json or inline JSON)")
    _add_common_args(p_k)

    p_x = sub.add_parser("exit-codes", help="Print the exit code table (markdown)")
    _add_common_args(p_x)

    p_r = sub.add_parser("report", help="Huffman stats for a file (vs zlib/zstd)")
    p_r.add_argument("input", type=Path)
    p_r.add_argument("--text", action="store_true", help="Symbols are UTF-8 characters")
    p_r.add_argument("--json", action="store_true", help="Print the report as JSON")
    _add_common_args(p_r)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "compress":
            return _cmd_compress(ns.input, ns.output, ns.tree, text=bool(ns.text))
        if ns.cmd == "decompress":
            return _cmd_decompress(ns.input, ns.output, ns.tree)
        if ns.cmd == "verify":
            return _cmd_verify(ns.input, ns.tree, full=bool(ns.full))
        if ns.cmd == "codes":
            return _cmd_codes(str(ns.tree))
        if ns.cmd == "exit-codes":
            sys.stdout.write(render_exit_codes_markdown())
            return 0
        if ns.cmd == "report":
            return _cmd_report(ns.input, text=bool(ns.text), as_json=bool(ns.json))
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except HuffcoreError as e:
        if getattr(ns, "debug", False):
            raise
        _say(str(e))
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except ValueError as e:
        if getattr(ns, "debug", False):
            raise
        _say(f"error: {e}")
        return EXIT_USAGE
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        _say(f"error: {e}")
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
