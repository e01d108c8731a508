"""Environment knobs.

  HUFFCORE_CHUNK_SIZE=65536   read/write chunk size in bytes (>= 1)
  HUFFCORE_VERBOSE=1          CLI prints a one-line summary on stderr
"""

from __future__ import annotations

import os

from huffcore.core.bitio import CHUNK_SIZE_DEFAULT

CHUNK_SIZE_ENV = "HUFFCORE_CHUNK_SIZE"
VERBOSE_ENV = "HUFFCORE_VERBOSE"


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except ValueError:
        return default


def chunk_size_from_env() -> int:
    return max(1, _env_int(CHUNK_SIZE_ENV, CHUNK_SIZE_DEFAULT))


def verbose_from_env() -> bool:
    return _env_bool(VERBOSE_ENV, False)
