from __future__ import annotations

from collections.abc import Hashable, Iterable

from huffcore.errors import InputUnreadable

Symbol = Hashable
FrequencyMap = dict[Symbol, int]


def count_frequencies(symbols: Iterable[Symbol]) -> FrequencyMap:
    """
    Conta le occorrenze di ogni simbolo in un solo passaggio (streaming).

    L'ordine delle chiavi e' quello di prima apparizione nello stream: il
    tree builder lo usa come tie-break deterministico.

    Stream vuoto -> mappa vuota. Un errore di lettura dello stream sottostante
    NON diventa una mappa parziale: viene rilanciato come InputUnreadable.
    """
    freq: FrequencyMap = {}
    try:
        for sym in symbols:
            freq[sym] = freq.get(sym, 0) + 1
    except OSError as err:
        raise InputUnreadable(f"lettura dello stream fallita: {err}") from err
    return freq


def total_count(freq: FrequencyMap) -> int:
    return sum(freq.values())
