"""Bit-granularity reader/writer over binary file objects.

Layout of a packed bit file:

    data bytes (MSB-first) + trailer(u8)

The trailer is the number of valid bits in the last data byte (1..8).
Writing zero bits produces an empty file (no trailer), so an empty input
compresses to an empty output.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable

from huffcore.errors import (
    CorruptBitstream,
    InputUnreadable,
    OutputUnwritable,
    TruncatedBitstream,
)

CHUNK_SIZE_DEFAULT = 64 * 1024


class BitWriter:
    def __init__(self, fp: BinaryIO, *, owns_fp: bool = False, chunk_size: int = CHUNK_SIZE_DEFAULT):
        self._fp = fp
        self._owns_fp = owns_fp
        self._chunk_size = max(1, int(chunk_size))
        self._out = bytearray()
        self._cur = 0
        self._nbits = 0  # bit validi in _cur
        self.bits_written = 0
        self.closed = False

    def write_bit(self, bit: bool) -> None:
        if self.closed:
            raise ValueError("BitWriter chiuso")
        self._cur = (self._cur << 1) | (1 if bit else 0)
        self._nbits += 1
        self.bits_written += 1
        if self._nbits == 8:
            self._out.append(self._cur)
            self._cur = 0
            self._nbits = 0
            if len(self._out) >= self._chunk_size:
                self._drain()

    def write_bits(self, bits: Iterable[int]) -> None:
        for bit in bits:
            self.write_bit(bool(bit))

    def _drain(self) -> None:
        if not self._out:
            return
        try:
            self._fp.write(bytes(self._out))
        except OSError as err:
            raise OutputUnwritable(f"scrittura bitstream fallita: {err}") from err
        self._out.clear()

    def close(self) -> None:
        """Flush the partial byte plus trailer, then release the file."""
        if self.closed:
            return
        self.closed = True
        try:
            if self.bits_written:
                lastbits = self._nbits if self._nbits else 8
                if self._nbits:
                    self._out.append((self._cur << (8 - self._nbits)) & 0xFF)
                self._out.append(lastbits)
            self._drain()
            try:
                self._fp.flush()
            except OSError as err:
                raise OutputUnwritable(f"flush bitstream fallito: {err}") from err
        finally:
            if self._owns_fp:
                self._fp.close()

    def __enter__(self) -> "BitWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BitReader:
    def __init__(self, fp: BinaryIO, *, owns_fp: bool = False, chunk_size: int = CHUNK_SIZE_DEFAULT):
        self._fp = fp
        self._owns_fp = owns_fp
        self._chunk_size = max(1, int(chunk_size))
        self._buf = b""
        self._pos = 0
        self._eof = False
        self._cur = 0
        self._mask = 0  # prossimo bit da leggere in _cur (0 = byte esaurito)
        self._left = 0  # bit ancora validi in _cur
        self._done = False  # trailer consumato
        self.bits_read = 0
        self.closed = False

    def _fill(self) -> None:
        # garantisce almeno 2 byte non consumati (byte dati + eventuale trailer) o EOF
        while not self._eof and len(self._buf) - self._pos < 2:
            try:
                chunk = self._fp.read(self._chunk_size)
            except OSError as err:
                raise InputUnreadable(f"lettura bitstream fallita: {err}") from err
            if not chunk:
                self._eof = True
                break
            self._buf = self._buf[self._pos:] + chunk
            self._pos = 0

    def _load_next(self) -> bool:
        if self._done:
            return False
        self._fill()
        remaining = len(self._buf) - self._pos
        if remaining == 0:
            self._done = True
            return False

        b = self._buf[self._pos]
        self._pos += 1
        self._fill()
        remaining = len(self._buf) - self._pos

        if remaining == 0:
            # un byte isolato: e' un trailer senza dati
            raise CorruptBitstream("bitstream senza dati (solo trailer)")

        if remaining == 1 and self._eof:
            lastbits = self._buf[self._pos]
            self._pos += 1
            self._done = True
            if not (1 <= lastbits <= 8):
                raise CorruptBitstream(f"trailer lastbits non valido: {lastbits}")
            self._left = lastbits
        else:
            self._left = 8

        self._cur = b
        self._mask = 0x80
        return True

    def has_next(self) -> bool:
        if self.closed:
            raise ValueError("BitReader chiuso")
        if self._left > 0:
            return True
        return self._load_next()

    def read_bit(self) -> bool:
        if not self.has_next():
            raise TruncatedBitstream("lettura oltre la fine del bitstream")
        bit = bool(self._cur & self._mask)
        self._mask >>= 1
        self._left -= 1
        self.bits_read += 1
        return bit

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._owns_fp:
            self._fp.close()

    def __enter__(self) -> "BitReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_bit_writer(path: str | Path, *, chunk_size: int = CHUNK_SIZE_DEFAULT) -> BitWriter:
    p = Path(path)
    try:
        fp = p.open("wb")
    except OSError as err:
        raise OutputUnwritable(f"impossibile aprire in scrittura: {p}: {err}") from err
    return BitWriter(fp, owns_fp=True, chunk_size=chunk_size)


def open_bit_reader(path: str | Path, *, chunk_size: int = CHUNK_SIZE_DEFAULT) -> BitReader:
    p = Path(path)
    try:
        fp = p.open("rb")
    except OSError as err:
        raise InputUnreadable(f"impossibile aprire in lettura: {p}: {err}") from err
    return BitReader(fp, owns_fp=True, chunk_size=chunk_size)


def packed_size(n_bits: int) -> int:
    """Size in bytes of a packed bit file holding n_bits: data + trailer, or 0."""
    if n_bits == 0:
        return 0
    return (n_bits + 7) // 8 + 1
