from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from huffcore.core.freq import FrequencyMap, Symbol
from huffcore.core.tree import HuffmanNode
from huffcore.errors import CorruptTree, UnknownSymbol

Codeword = tuple[int, ...]
CodeTable = dict[Symbol, Codeword]

# codeword della radice-foglia (alfabeto di un solo simbolo)
SINGLE_SYMBOL_CODE: Codeword = (0,)


def build_code_table(root: HuffmanNode) -> CodeTable:
    """
    root -> {symbol: codeword}, 0 = sinistra, 1 = destra.

    Funzione pura: ogni chiamata ritorna una mappa nuova. La profondita' della
    ricorsione e' limitata dalla dimensione dell'alfabeto.
    """
    if root.is_leaf:
        return {root.symbol: SINGLE_SYMBOL_CODE}

    codes: CodeTable = {}

    def dfs(node: HuffmanNode, path: Codeword) -> None:
        if node.is_leaf:
            if node.symbol in codes:
                raise CorruptTree(f"simbolo duplicato nell'albero: {node.symbol!r}")
            codes[node.symbol] = path
            return
        if node.left is None or node.right is None:
            raise CorruptTree("nodo interno con un solo figlio")
        dfs(node.left, path + (0,))
        dfs(node.right, path + (1,))

    dfs(root, ())
    return codes


def code_lengths(table: CodeTable) -> dict[Symbol, int]:
    return {sym: len(code) for sym, code in table.items()}


def length_histogram(table: CodeTable) -> dict[int, int]:
    """{codeword length: number of symbols}, sorted by length."""
    hist = Counter(len(code) for code in table.values())
    return dict(sorted(hist.items()))


def is_prefix_free(table: CodeTable) -> bool:
    # dopo l'ordinamento lessicografico, un prefisso precede sempre le sue estensioni
    words = sorted(table.values())
    for a, b in zip(words, words[1:]):
        if b[: len(a)] == a:
            return False
    return True


def encoded_bit_length(freq: FrequencyMap, table: CodeTable) -> int:
    total = 0
    for pos, (sym, f) in enumerate(freq.items()):
        code = table.get(sym)
        if code is None:
            raise UnknownSymbol(sym, pos)
        total += f * len(code)
    return total


def format_code(bits: Sequence[int]) -> str:
    return "".join("1" if b else "0" for b in bits)
