"""Typed errors for huffcore.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- Every phase either returns a complete value or raises one of these; nothing
  is logged-and-continued.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- `huffcore exit-codes` renders the table from this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_UNREADABLE = 12
EXIT_HASH_MISMATCH = 13
EXIT_EMPTY_ALPHABET = 14
EXIT_RELEASE = 15


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Usage/config error (invalid args, invalid tree spec, etc.)"),
    ExitCodeInfo(
        EXIT_GENERIC,
        "GENERIC",
        "Generic failure (corrupt/truncated bitstream, unknown symbol, unexpected error)",
    ),
    ExitCodeInfo(EXIT_UNREADABLE, "UNREADABLE", "Input could not be read or output could not be written"),
    ExitCodeInfo(EXIT_HASH_MISMATCH, "HASH_MISMATCH", "Integrity failure (decoded data does not match sha256)"),
    ExitCodeInfo(EXIT_EMPTY_ALPHABET, "EMPTY_ALPHABET", "Nothing to encode (empty frequency map)"),
    ExitCodeInfo(EXIT_RELEASE, "RELEASE", "Transform completed but a resource could not be closed"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE - do not edit manually.\n")
    lines.append("> Source of truth: `src/huffcore/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `huffcore exit-codes > docs/exit_codes.md`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- All internal errors extend `HuffcoreError` and carry an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class HuffcoreError(Exception):
    """Base error for huffcore."""

    exit_code: int = EXIT_GENERIC


class UsageError(HuffcoreError):
    exit_code = EXIT_USAGE


class TreeSpecError(UsageError, ValueError):
    pass


class InputUnreadable(HuffcoreError):
    exit_code = EXIT_UNREADABLE


class OutputUnwritable(HuffcoreError):
    exit_code = EXIT_UNREADABLE


class EmptyAlphabet(HuffcoreError):
    """Frequency map has no entries: there is nothing to build a tree from."""

    exit_code = EXIT_EMPTY_ALPHABET


class UnknownSymbol(HuffcoreError, LookupError):
    """A symbol to compress has no codeword (table built from other data)."""

    def __init__(self, symbol: Any, position: int) -> None:
        super().__init__(f"simbolo senza codeword: {symbol!r} (posizione {position})")
        self.symbol = symbol
        self.position = position


class CorruptPayload(HuffcoreError):
    exit_code = EXIT_GENERIC


class CorruptBitstream(CorruptPayload):
    pass


class TruncatedBitstream(CorruptBitstream):
    pass


class CorruptTree(CorruptPayload):
    pass


class HashMismatch(HuffcoreError):
    exit_code = EXIT_HASH_MISMATCH


class ResourceReleaseError(HuffcoreError):
    """Closing a resource failed after the transform itself completed.

    ``result`` holds the logical result of the completed transform.
    """

    exit_code = EXIT_RELEASE

    def __init__(self, message: str, *, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
