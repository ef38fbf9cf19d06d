"""Catalog of the free modular lattices that can be generated.

Entries are named after the chain lengths of their generators: "3-2" is generated
by a chain a < b < c and a chain d < e, "1-1-1" by three unrelated generators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .base import LOWER
from .errors import UnknownLattice


@dataclass(frozen=True)
class LatticeDef:
    elements: int                                            # element count of the complete lattice
    lattice_name: str
    generator_element_names: Tuple[str, ...]
    generator_element_relations: Tuple[Tuple[str, str, int], ...] = ()
    hide: bool = False                                       # not interesting to show

    @property
    def chains(self) -> List[int]:
        return [int(x) for x in self.lattice_name.split("-")]


def _chain_relations(*chains: str) -> Tuple[Tuple[str, str, int], ...]:
    # "abc" -> a < b, b < c
    rels = []
    for chain in chains:
        for n1, n2 in zip(chain, chain[1:]):
            rels.append((n1, n2, LOWER))
    return tuple(rels)


LATTICE_DEFS: Tuple[LatticeDef, ...] = (
    LatticeDef(8, "2-1", ("a", "b", "c"), _chain_relations("ab"), hide=True),
    LatticeDef(13, "3-1", ("a", "b", "c", "d"), _chain_relations("abc"), hide=True),
    LatticeDef(18, "2-2", ("a", "b", "c", "d"), _chain_relations("ab", "cd")),
    LatticeDef(19, "4-1", ("a", "b", "c", "d", "e"), _chain_relations("abcd"), hide=True),
    LatticeDef(26, "5-1", ("a", "b", "c", "d", "e", "f"), _chain_relations("abcde")),
    LatticeDef(28, "1-1-1", ("a", "b", "c")),
    LatticeDef(33, "3-2", ("a", "b", "c", "d", "e"), _chain_relations("abc", "de")),
    LatticeDef(54, "4-2", ("a", "b", "c", "d", "e", "f"), _chain_relations("abcd", "ef")),
    LatticeDef(68, "3-3", ("a", "b", "c", "d", "e", "f"), _chain_relations("abc", "def")),
    LatticeDef(138, "2-1-1", ("a", "b", "c", "d"), _chain_relations("ab")),
    LatticeDef(629, "3-1-1", ("a", "b", "c", "d", "e"), _chain_relations("abc")),
    LatticeDef(2784, "4-1-1", ("a", "b", "c", "d", "e", "f"), _chain_relations("abcd")),
    # "2-2-1" (2631 elements, chains ab and cd plus e) does not generate yet.
)


def lattice_names(include_hidden: bool = True) -> List[str]:
    return [d.lattice_name for d in LATTICE_DEFS if include_hidden or not d.hide]


def get_lattice_def_by_name(lattice_name: str) -> LatticeDef:
    for d in LATTICE_DEFS:
        if d.lattice_name == lattice_name:
            return d
    raise UnknownLattice(f'No definition found for lattice name "{lattice_name}".')
