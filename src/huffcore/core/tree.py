from __future__ import annotations

import heapq
import itertools
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional

from huffcore.core.freq import FrequencyMap, Symbol
from huffcore.errors import CorruptTree, EmptyAlphabet


# -------------------
# Strutture di base Huffman
# -------------------
@dataclass(frozen=True)
class HuffmanNode:
    freq: int
    symbol: Optional[Symbol] = None  # solo foglie
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def build_tree(freq: FrequencyMap) -> HuffmanNode:
    """
    Costruzione greedy di Huffman: min-heap di alberi-foglia, si fondono
    ripetutamente i due alberi con frequenza minore (T1 a sinistra, T2 a destra).

    Tie-break: (freq, seq) dove seq e' l'ordine di inserimento nello heap
    (prima le foglie nell'ordine della mappa, poi i nodi fusi man mano).
    Stessa mappa -> stesso albero, sempre.

    Casi speciali:
      - mappa vuota: EmptyAlphabet, nessuna operazione sullo heap
      - un solo simbolo: l'albero e' una foglia sola (la codeword la
        sintetizza build_code_table)
    """
    if not freq:
        raise EmptyAlphabet("nessun simbolo da codificare (mappa frequenze vuota)")

    heap: list[tuple[int, int, HuffmanNode]] = []
    counter = itertools.count()

    for sym, f in freq.items():
        if f <= 0:
            raise ValueError(f"frequenza non positiva per {sym!r}: {f}")
        node = HuffmanNode(freq=int(f), symbol=sym)
        heapq.heappush(heap, (node.freq, next(counter), node))

    while len(heap) > 1:
        f1, _, t1 = heapq.heappop(heap)
        f2, _, t2 = heapq.heappop(heap)
        parent = HuffmanNode(freq=f1 + f2, left=t1, right=t2)
        heapq.heappush(heap, (parent.freq, next(counter), parent))

    return heap[0][2]


def iter_leaves(root: HuffmanNode) -> Iterator[HuffmanNode]:
    """Foglie da sinistra a destra."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            yield node
            continue
        if node.right is not None:
            stack.append(node.right)
        if node.left is not None:
            stack.append(node.left)


def iter_nodes(root: HuffmanNode) -> Iterator[HuffmanNode]:
    """Pre-order (nodo, sinistra, destra)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if node.right is not None:
            stack.append(node.right)
        if node.left is not None:
            stack.append(node.left)


def tree_depth(root: HuffmanNode) -> int:
    best = 0
    stack = [(root, 0)]
    while stack:
        node, d = stack.pop()
        best = max(best, d)
        for child in (node.left, node.right):
            if child is not None:
                stack.append((child, d + 1))
    return best


def check_tree(root: HuffmanNode) -> None:
    """Raise CorruptTree unless root is a well-formed Huffman tree.

    Checks:
      - every internal node has exactly two children and no symbol
      - every leaf has a symbol and a positive frequency
      - symbols are unique across leaves
      - every internal node's freq equals the sum of its children
    """
    seen: set[Symbol] = set()
    for node in iter_nodes(root):
        if node.is_leaf:
            if node.symbol is None:
                raise CorruptTree("foglia senza simbolo")
            if node.freq <= 0:
                raise CorruptTree(f"foglia {node.symbol!r} con frequenza non positiva: {node.freq}")
            if node.symbol in seen:
                raise CorruptTree(f"simbolo duplicato nell'albero: {node.symbol!r}")
            seen.add(node.symbol)
            continue

        if node.left is None or node.right is None:
            raise CorruptTree("nodo interno con un solo figlio")
        if node.symbol is not None:
            raise CorruptTree(f"nodo interno con simbolo: {node.symbol!r}")
        if node.freq != node.left.freq + node.right.freq:
            raise CorruptTree(
                f"frequenza non conservata: {node.freq} != {node.left.freq} + {node.right.freq}"
            )


def tree_frequencies(root: HuffmanNode) -> FrequencyMap:
    """Recover the frequency map from the leaves (left-to-right order)."""
    return {leaf.symbol: leaf.freq for leaf in iter_leaves(root)}
