from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any, Optional, Union

from huffcore.core.bitio import CHUNK_SIZE_DEFAULT
from huffcore.errors import InputUnreadable, OutputUnwritable

# bytes: simboli int 0..255; text: caratteri (str di lunghezza 1), UTF-8 su disco
TEXT_ENCODING = "utf-8"


def iter_file_symbols(
    path: str | Path,
    *,
    text: bool = False,
    chunk_size: int = CHUNK_SIZE_DEFAULT,
    digest: Optional[Any] = None,
) -> Iterator[Union[int, str]]:
    """Yield the symbols of a file, one at a time, reading it in chunks.

    If ``digest`` is given (a hashlib object) it is fed the raw file bytes
    as they are read, so hashing needs no extra pass over the file.

    Open/read/decode failures surface as InputUnreadable.
    """
    p = Path(path)
    n = max(1, int(chunk_size))
    try:
        if text:
            with p.open("r", encoding=TEXT_ENCODING, newline="") as fp:
                while True:
                    chunk = fp.read(n)
                    if not chunk:
                        break
                    if digest is not None:
                        # decode stretto + newline="": il re-encode ridà i byte del file
                        digest.update(chunk.encode(TEXT_ENCODING))
                    yield from chunk
        else:
            with p.open("rb") as fp:
                while True:
                    chunk = fp.read(n)
                    if not chunk:
                        break
                    if digest is not None:
                        digest.update(chunk)
                    yield from chunk
    except UnicodeDecodeError as err:
        raise InputUnreadable(f"{p}: non e' UTF-8 valido ({err})") from err
    except OSError as err:
        raise InputUnreadable(f"impossibile leggere {p}: {err}") from err


class SymbolSink:
    """Buffered writer of decoded symbols."""

    def __init__(
        self,
        fp: IO,
        *,
        text: bool = False,
        owns_fp: bool = False,
        chunk_size: int = CHUNK_SIZE_DEFAULT,
    ):
        self._fp = fp
        self._text = text
        self._owns_fp = owns_fp
        self._chunk_size = max(1, int(chunk_size))
        self._buf: list[str] | bytearray = [] if text else bytearray()
        self.count = 0
        self.closed = False

    def write(self, symbol: Union[int, str]) -> None:
        if self.closed:
            raise ValueError("SymbolSink chiuso")
        self._buf.append(symbol)  # type: ignore[arg-type]
        self.count += 1
        if len(self._buf) >= self._chunk_size:
            self._drain()

    def _drain(self) -> None:
        if not self._buf:
            return
        data = "".join(self._buf) if self._text else bytes(self._buf)  # type: ignore[arg-type]
        try:
            self._fp.write(data)
        except OSError as err:
            raise OutputUnwritable(f"scrittura simboli fallita: {err}") from err
        self._buf.clear()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._drain()
            try:
                self._fp.flush()
            except OSError as err:
                raise OutputUnwritable(f"flush simboli fallito: {err}") from err
        finally:
            if self._owns_fp:
                self._fp.close()


def open_symbol_sink(
    path: str | Path, *, text: bool = False, chunk_size: int = CHUNK_SIZE_DEFAULT
) -> SymbolSink:
    p = Path(path)
    try:
        if text:
            fp: IO = p.open("w", encoding=TEXT_ENCODING, newline="")
        else:
            fp = p.open("wb")
    except OSError as err:
        raise OutputUnwritable(f"impossibile aprire in scrittura: {p}: {err}") from err
    return SymbolSink(fp, text=text, owns_fp=True, chunk_size=chunk_size)
