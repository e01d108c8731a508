from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Optional

from huffcore.core.bitio import BitReader, BitWriter
from huffcore.core.codes import CodeTable, build_code_table
from huffcore.core.freq import Symbol, count_frequencies
from huffcore.core.symbols import SymbolSink
from huffcore.core.tree import HuffmanNode, build_tree
from huffcore.errors import (
    CorruptBitstream,
    CorruptTree,
    InputUnreadable,
    ResourceReleaseError,
    TruncatedBitstream,
    UnknownSymbol,
)


def _release(
    closers: Sequence[Callable[[], None]],
    *,
    failed: Optional[BaseException],
    result: Any,
) -> None:
    """
    Chiude tutte le risorse, sempre, nell'ordine dato.

    - transform fallita: l'errore originale resta quello propagato dal
      chiamante; le close fallite finiscono come note su di esso
    - transform riuscita: una close fallita diventa ResourceReleaseError
      con il risultato logico allegato
    """
    close_errors: list[Exception] = []
    for close in closers:
        try:
            close()
        except Exception as e:
            close_errors.append(e)

    if not close_errors:
        return
    if failed is not None:
        for e in close_errors:
            failed.add_note(f"inoltre, chiusura risorsa fallita: {e!r}")
        return
    raise ResourceReleaseError(
        f"trasformazione completata ma chiusura fallita: {close_errors[0]}", result=result
    ) from close_errors[0]


def _source_closers(symbols: Iterable[Symbol]) -> list[Callable[[], None]]:
    close = getattr(symbols, "close", None)
    return [close] if callable(close) else []


def compress(symbols: Iterable[Symbol], table: CodeTable, writer: BitWriter) -> int:
    """
    Scrive sul writer la codeword di ogni simbolo, nell'ordine dello stream.

    Ritorna il numero di bit scritti. Il writer viene chiuso (flush del byte
    parziale) sia in caso di successo che di errore, e cosi' la sorgente se ha
    un close() (es. il generatore di iter_file_symbols, che tiene aperto il file).
    """
    closers = [writer.close, *_source_closers(symbols)]
    try:
        try:
            for pos, sym in enumerate(symbols):
                code = table.get(sym)
                if code is None:
                    raise UnknownSymbol(sym, pos)
                for bit in code:
                    writer.write_bit(bit == 1)
        except OSError as err:
            raise InputUnreadable(f"lettura dello stream fallita: {err}") from err
    except BaseException as err:
        _release(closers, failed=err, result=None)
        raise

    _release(closers, failed=None, result=writer.bits_written)
    return writer.bits_written


def _walk(reader: BitReader, root: HuffmanNode, emit: Callable[[Symbol], None]) -> int:
    emitted = 0

    if root.is_leaf:
        # alfabeto di un simbolo: ogni codeword e' il singolo bit 0
        while reader.has_next():
            if reader.read_bit():
                raise CorruptBitstream(
                    f"bit 1 inatteso con albero a foglia singola (dopo {emitted} simboli)"
                )
            emit(root.symbol)
            emitted += 1
        return emitted

    node = root
    while reader.has_next():
        nxt = node.right if reader.read_bit() else node.left
        if nxt is None:
            raise CorruptTree("nodo interno con un solo figlio")
        node = nxt
        if node.is_leaf:
            emit(node.symbol)
            emitted += 1
            node = root

    if node is not root:
        raise TruncatedBitstream(f"bitstream terminato a meta' codeword (dopo {emitted} simboli)")
    return emitted


def decompress(reader: BitReader, root: HuffmanNode, sink: SymbolSink) -> int:
    """
    Ricostruisce lo stream di simboli camminando l'albero bit per bit.

    Ritorna il numero di simboli emessi. Reader e sink vengono chiusi su ogni
    percorso di uscita.
    """
    try:
        emitted = _walk(reader, root, sink.write)
    except BaseException as err:
        _release([reader.close, sink.close], failed=err, result=None)
        raise

    _release([reader.close, sink.close], failed=None, result=emitted)
    return emitted


# -------------------
# Varianti in memoria
# -------------------
def encode_symbols(symbols: Iterable[Symbol], table: CodeTable) -> bytes:
    """symbols -> packed bit file (data + trailer) in memoria."""
    buf = io.BytesIO()
    compress(symbols, table, BitWriter(buf))
    return buf.getvalue()


def decode_symbols(blob: bytes, root: HuffmanNode) -> list[Symbol]:
    out: list[Symbol] = []
    with BitReader(io.BytesIO(blob)) as reader:
        _walk(reader, root, out.append)
    return out


class CodecHuffman:
    """
    Huffman su bytes, tutto in memoria.

    L'albero NON e' incluso nel blob: il chiamante lo conserva e lo passa a
    decompress_bytes (canale esterno).
    """

    codec_id = "huffman"

    def compress_bytes(self, data: bytes) -> tuple[HuffmanNode | None, bytes]:
        if not data:
            return None, b""
        root = build_tree(count_frequencies(data))
        return root, encode_symbols(data, build_code_table(root))

    def decompress_bytes(self, blob: bytes, root: HuffmanNode | None) -> bytes:
        if root is None:
            if blob:
                raise CorruptBitstream("bitstream non vuoto senza albero")
            return b""
        return bytes(decode_symbols(blob, root))  # type: ignore[arg-type]
