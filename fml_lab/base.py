from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import (
    ElementCountMismatch,
    InvalidSelfRelation,
    RelationCollision,
    RelationMergeConflict,
    UnknownElement,
)


# Order relation of element 1 to element 2: e1 < e2 is LOWER, e1 > e2 is HIGHER.
UNDEF = 0
LOWER = -1
HIGHER = 1

# Operators. The operator value equals the relation of the result to its operands.
INF = -1                                  # meet
SUP = 1                                   # join
OPERATORS = (INF, SUP)

NO_ELEMENT = -1
AMBIGUOUS = -2


def operator_relation(op: int) -> int:
    return int(op)


def format_relation(rel: int) -> str:
    if rel == UNDEF:
        return "undef"
    if rel == LOWER:
        return "<"
    if rel == HIGHER:
        return ">"
    return "err"


@dataclass(frozen=True)
class Combination:
    """Unordered element pair plus operator, normalized so that e1 <= e2."""

    e1: int
    e2: int
    op: int

    def __post_init__(self) -> None:
        if self.e1 > self.e2:
            e1, e2 = self.e2, self.e1
            object.__setattr__(self, "e1", e1)
            object.__setattr__(self, "e2", e2)
        if self.op not in OPERATORS:
            raise ValueError(f"Invalid element operator: {self.op}")

    def __str__(self) -> str:
        return f"{self.e1}{'*' if self.op == INF else '+'}{self.e2}"


def format_combinations(combs: Iterable[Combination]) -> str:
    return "[" + ", ".join(str(c) for c in combs) + "]"


@dataclass(frozen=True)
class Element:
    """Snapshot of an element table entry."""

    name: str                                   # primary element name
    name_operator: Optional[int]                # top level operator of `name`, if it is an expression
    is_generator: bool
    is_join: bool
    is_meet: bool
    is_top: bool
    is_bottom: bool
    expr_depth: int                             # bracket nesting of the simplified expression
    expr_width: int                             # number of generator leaves in the expression
    alias_names: Tuple[str, ...] = ()
    combinations: Tuple[Combination, ...] = ()  # combinations whose result is this element


class ElementTable:
    """Append-only registry of the discovered elements."""

    def __init__(self) -> None:
        self._elements: List[Element] = []
        self._name_map: Dict[str, int] = {}
        self._top: Optional[int] = None
        self._bottom: Optional[int] = None

    @property
    def n(self) -> int:
        return len(self._elements)

    @property
    def top_element_no(self) -> Optional[int]:
        return self._top

    @property
    def bottom_element_no(self) -> Optional[int]:
        return self._bottom

    def _validate(self, element_no: int) -> None:
        if element_no < 0 or element_no >= self.n:
            raise IndexError(f"Element number {element_no} out of range.")

    def add(
        self,
        name: str,
        is_generator: bool,
        comb: Optional[Combination],
        expr_depth: int,
        expr_width: int,
    ) -> int:
        """Append a new element and return its element number."""
        assert is_generator == (comb is None)
        if name in self._name_map:
            raise ValueError(f'Duplicate element name "{name}".')
        is_top = name == "1"
        is_bottom = name == "0"
        op = comb.op if comb is not None else None
        e = Element(
            name=name,
            name_operator=None if (is_top or is_bottom) else op,
            is_generator=is_generator,
            is_join=op == SUP,
            is_meet=op == INF,
            is_top=is_top,
            is_bottom=is_bottom,
            expr_depth=int(expr_depth),
            expr_width=int(expr_width),
            combinations=(comb,) if comb is not None else (),
        )
        element_no = len(self._elements)
        self._elements.append(e)
        self._name_map[name] = element_no
        if is_top:
            self._top = element_no
        if is_bottom:
            self._bottom = element_no
        return element_no

    def add_alias(self, element_no: int, alias_name: str, comb: Optional[Combination] = None) -> None:
        self._validate(element_no)
        e = self._elements[element_no]
        if comb is None:
            self._elements[element_no] = replace(e, alias_names=e.alias_names + (alias_name,))
            return
        self._elements[element_no] = replace(
            e,
            alias_names=e.alias_names + (alias_name,),
            combinations=e.combinations + (comb,),
            is_join=e.is_join or comb.op == SUP,
            is_meet=e.is_meet or comb.op == INF,
        )

    def get(self, element_no: int) -> Element:
        self._validate(element_no)
        return self._elements[element_no]

    def all(self) -> List[Element]:
        return list(self._elements)

    def lookup(self, name: str) -> int:
        element_no = self._name_map.get(name)
        if element_no is None:
            raise UnknownElement(f'Element "{name}" is not known.')
        return element_no

    def get_by_name(self, name: str) -> Element:
        return self._elements[self.lookup(name)]

    def name(self, element_no: int) -> str:
        if element_no < 0 or element_no >= self.n:
            return "undef" if element_no == NO_ELEMENT else f"undef({element_no})"
        return self._elements[element_no].name

    def names(self, element_nos: Sequence[int]) -> str:
        return "[" + ", ".join(self.name(i) for i in element_nos) + "]"

    def all_names(self) -> List[str]:
        return [e.name for e in self._elements]


class RelationMap:
    """Dense n_max x n_max matrix of pairwise order relations.

    Cell (i, j) holds the relation of element i to element j; the matrix is kept
    antisymmetric on every write. Only the leading n x n block is live.
    """

    def __init__(self, max_elements: int):
        self.max_elements = int(max_elements)
        self._n = 0
        self._def_count = 0
        self._a = np.zeros((self.max_elements, self.max_elements), dtype=np.int8)

    @property
    def n(self) -> int:
        return self._n

    @n.setter
    def n(self, n: int) -> None:
        assert self._n <= n
        if n > self.max_elements:
            raise ElementCountMismatch(f"Relation map capacity {self.max_elements} exceeded by element {n - 1}.")
        self._n = int(n)

    @property
    def def_count(self) -> int:
        """Number of defined (unordered) relations."""
        return self._def_count

    def get(self, e1: int, e2: int) -> int:
        return int(self._a[e1, e2])

    def related(self, e1: int, e2: int) -> bool:
        return bool(self._a[e1, e2] != UNDEF)

    def set(self, e1: int, e2: int, rel: int) -> None:
        assert 0 <= e1 < self._n and 0 <= e2 < self._n
        if e1 == e2:
            if rel != UNDEF:
                raise InvalidSelfRelation(f"The self-relation of element {e1} must be undefined.")
            return
        old = int(self._a[e1, e2])
        if old == rel:
            return
        if old != UNDEF:
            raise RelationCollision(
                f"Relation collision, e1={e1}, e2={e2}, oldRel={format_relation(old)}, newRel={format_relation(rel)}."
            )
        self._a[e1, e2] = rel
        self._a[e2, e1] = -rel
        self._def_count += 1

    def add_row(self, rels: np.ndarray) -> int:
        """Append the relation row of a new element and return its element number."""
        rels = np.asarray(rels, dtype=np.int8)
        assert rels.shape == (self._n,)
        new = self._n
        self.n = new + 1
        self._a[new, :new] = rels
        self._a[:new, new] = -rels
        self._def_count += int(np.count_nonzero(rels))
        return new

    def merge_row(self, element_no: int, rels: np.ndarray) -> int:
        """Merge a candidate row into the row of an element; returns the number of new relations."""
        rels = np.asarray(rels, dtype=np.int8)
        n = self._n
        assert rels.shape == (n,)
        old = self._a[element_no, :n]
        conflict = (old != UNDEF) & (rels != UNDEF) & (old != rels)
        conflict[element_no] = False
        if conflict.any():
            e2 = int(np.flatnonzero(conflict)[0])
            raise RelationMergeConflict(
                f"Relation merging conflict: e1={element_no} e2={e2} rel1={int(old[e2])} rel2={int(rels[e2])}"
            )
        new = (old == UNDEF) & (rels != UNDEF)
        new[element_no] = False
        idx = np.flatnonzero(new)
        self._a[element_no, idx] = rels[idx]
        self._a[idx, element_no] = -rels[idx]
        self._def_count += len(idx)
        return len(idx)

    def row(self, element_no: int) -> np.ndarray:
        """Read-only view of the live part of a row."""
        assert 0 <= element_no < self._n
        view = self._a[element_no, : self._n]
        view.flags.writeable = False
        return view

    def row_copy(self, element_no: int) -> np.ndarray:
        assert 0 <= element_no < self._n
        return self._a[element_no, : self._n].copy()

    def matrix(self) -> np.ndarray:
        """Copy of the live n x n block."""
        return self._a[: self._n, : self._n].copy()

    def find_row(self, rels: np.ndarray, ignore_self: bool) -> int:
        """Return the first element whose row equals `rels`, or NO_ELEMENT."""
        n = self._n
        rels = np.asarray(rels, dtype=np.int8)
        assert rels.shape == (n,)
        diff = self._a[:n, :n] != rels[None, :]
        if ignore_self:
            np.fill_diagonal(diff, False)
        hits = np.flatnonzero(~diff.any(axis=1))
        return int(hits[0]) if len(hits) else NO_ELEMENT

    def complete_chains(self) -> int:
        """Fill in every relation implied by transitivity; returns the number of new relations."""
        n = self._n
        block = self._a[:n, :n]
        lower = block == LOWER
        total = 0
        while True:
            lf = lower.astype(np.float32)
            closure = lower | ((lf @ lf) > 0)
            new = closure & ~lower
            count = int(np.count_nonzero(new))
            if count == 0:
                break
            cycle = closure & closure.T
            if cycle.any():
                e1, e2 = (int(x) for x in np.argwhere(cycle)[0])
                raise RelationCollision(f"Relation collision, e1={e1}, e2={e2}: relation chains form a cycle.")
            block[new] = LOWER
            block[new.T] = HIGHER
            total += count
            lower = closure
        self._def_count += total
        return total

    def equals(self, other: "RelationMap") -> bool:
        if self._n != other._n:
            return False
        n = self._n
        return bool(np.array_equal(self._a[:n, :n], other._a[:n, :n]))


def _cache_dtype(max_elements: int) -> type:
    if max_elements <= np.iinfo(np.int8).max:
        return np.int8
    if max_elements <= np.iinfo(np.int16).max:
        return np.int16
    return np.int32


class ComboMap:
    """Maps an unordered element pair to a result element number or NO_ELEMENT."""

    def __init__(self, max_elements: int):
        self.max_elements = int(max_elements)
        self._a = np.full((self.max_elements, self.max_elements), NO_ELEMENT, dtype=_cache_dtype(self.max_elements))

    @property
    def dtype(self) -> np.dtype:
        return self._a.dtype

    def set(self, e1: int, e2: int, e3: int) -> None:
        assert 0 <= e1 < self.max_elements and 0 <= e2 < self.max_elements and 0 <= e3 < self.max_elements
        self._a[e1, e2] = e3
        self._a[e2, e1] = e3

    def get(self, e1: int, e2: int) -> int:
        return int(self._a[e1, e2])


class CombinationCache:
    """Result element of every (element, element, operator) triple already resolved."""

    def __init__(self, max_elements: int):
        self.infimums = ComboMap(max_elements)
        self.supremums = ComboMap(max_elements)

    def combo_map(self, op: int) -> ComboMap:
        if op == INF:
            return self.infimums
        if op == SUP:
            return self.supremums
        raise ValueError(f"Invalid element operator: {op}")

    def set(self, comb: Combination, e3: int) -> None:
        self.combo_map(comb.op).set(comb.e1, comb.e2, e3)

    def set_multi(self, combs: Iterable[Combination], e3: int) -> None:
        for comb in combs:
            self.set(comb, e3)

    def get(self, comb: Combination) -> int:
        return self.combo_map(comb.op).get(comb.e1, comb.e2)

    def get2(self, e1: int, e2: int, op: int) -> int:
        return self.combo_map(op).get(e1, e2)


@dataclass
class LatticeState:
    """Mutable state of one generation run, owned by the controller."""

    max_elements: int
    elements: ElementTable = field(init=False)
    relations: RelationMap = field(init=False)
    cache: CombinationCache = field(init=False)

    def __post_init__(self) -> None:
        self.elements = ElementTable()
        self.relations = RelationMap(self.max_elements)
        self.cache = CombinationCache(self.max_elements)
