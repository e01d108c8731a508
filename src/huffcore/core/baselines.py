from __future__ import annotations

import zlib
from dataclasses import dataclass

try:
    import zstandard as zstd  # type: ignore
except Exception:  # pragma: no cover
    zstd = None


def have_zstd() -> bool:
    return zstd is not None


@dataclass(frozen=True)
class CodecZlib:
    """zlib/DEFLATE, solo come termine di paragone per i report."""

    level: int = 9
    codec_id: str = "zlib"

    def __post_init__(self) -> None:
        if not (0 <= self.level <= 9):
            raise ValueError(f"zlib level must be 0..9, got {self.level}")

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(bytes(data), self.level)


@dataclass(frozen=True)
class CodecZstd:
    """
    zstd come baseline.

    "tight" toglie content size e checksum dal frame, per confrontare
    il payload e non l'overhead del frame.
    """

    level: int = 19
    tight: bool = True
    codec_id: str = "zstd"

    def compress(self, data: bytes) -> bytes:
        if zstd is None:
            raise RuntimeError(
                "Modulo 'zstandard' non disponibile. Installa con: python3 -m pip install zstandard"
            )
        if self.tight:
            c = zstd.ZstdCompressor(
                level=int(self.level),
                write_content_size=False,
                write_checksum=False,
            )
        else:
            c = zstd.ZstdCompressor(level=int(self.level))
        return c.compress(bytes(data))


def baseline_sizes(data: bytes) -> dict[str, int | None]:
    """{codec_id: compressed size}; None when the codec is not installed."""
    out: dict[str, int | None] = {"zlib": len(CodecZlib().compress(data))}
    out["zstd"] = len(CodecZstd().compress(data)) if have_zstd() else None
    return out
