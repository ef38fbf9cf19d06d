from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .base import (
    AMBIGUOUS,
    HIGHER,
    LOWER,
    NO_ELEMENT,
    UNDEF,
    Combination,
    ElementTable,
    LatticeState,
    RelationMap,
    operator_relation,
)
from .errors import ConflictingGroupRelations

logger = logging.getLogger(__name__)


def min_relation(rels: np.ndarray) -> int:
    if len(rels) == 0:
        return HIGHER
    return min(HIGHER, int(np.min(rels)))


def max_relation(rels: np.ndarray) -> int:
    if len(rels) == 0:
        return LOWER
    return max(LOWER, int(np.max(rels)))


def combination_relation(rel31: int, rel32: int, op: int) -> int:
    """Relation of the result of `e1 op e2` to an element e3, given e3's relations to e1 and e2.

    Rules:
      e3 > e1 and e3 > e2 implies e3 >= e1 + e2
      e3 < e1 or  e3 < e2 implies e3 <= e1 + e2
      e3 < e1 and e3 < e2 implies e3 <= e1 * e2
      e3 > e1 or  e3 > e2 implies e3 >= e1 * e2
    """
    comb_rel = operator_relation(op)
    if rel31 == comb_rel and rel32 == comb_rel:
        return -comb_rel
    if rel31 == -comb_rel or rel32 == -comb_rel:
        return comb_rel
    return UNDEF


# ----------------------------
# Bounds and covering relation
# ----------------------------

def find_common_related_elements(relations: RelationMap, e1: int, e2: int, rel: int) -> Optional[List[int]]:
    """Elements e3 with rel(e3, e1) == rel(e3, e2) == rel, or None if there are none."""
    r1 = relations.row(e1)
    r2 = relations.row(e2)
    idx = np.flatnonzero((r1 == -rel) & (r2 == -rel))
    if len(idx) == 0:
        return None
    return [int(i) for i in idx]


def find_lowest_or_highest_element(relations: RelationMap, element_nos: Sequence[int], rel: int) -> int:
    """Unique extremal element of a set in direction `rel`.

    Returns NO_ELEMENT if the set is empty or if the extremum is not defined
    (incomparable candidates survive).
    """
    n = len(element_nos)
    if n == 0:
        return NO_ELEMENT
    if n == 1:
        return int(element_nos[0])
    a = list(element_nos)
    p1 = 0
    while True:
        while p1 < n and a[p1] < 0:
            p1 += 1
        if p1 >= n:
            raise RuntimeError("Program logic error in find_lowest_or_highest_element.")
        p2 = p1 + 1
        undef_skipped = False
        while True:
            while p2 < n and a[p2] < 0:
                p2 += 1
            if p2 >= n:
                return NO_ELEMENT if undef_skipped else a[p1]
            rel12 = relations.get(a[p1], a[p2])
            if not rel12:
                p2 += 1
                undef_skipped = True
                continue
            if rel12 == rel:
                a[p2] = -1
                p2 += 1
            else:
                a[p1] = -1
                p1 += 1
                break


def find_infimum_or_supremum(relations: RelationMap, e1: int, e2: int, op: int) -> int:
    """Formal evaluation of `e1 op e2` on the current order.

    Returns the element number, NO_ELEMENT if there is no common bound, or
    AMBIGUOUS if several incomparable extremal bounds exist.
    """
    rel = operator_relation(op)
    rel12 = relations.get(e1, e2)
    if rel12:
        return e1 if rel12 == rel else e2
    common = find_common_related_elements(relations, e1, e2, rel)
    if common is None:
        return NO_ELEMENT
    e3 = find_lowest_or_highest_element(relations, common, -rel)
    if e3 < 0:
        logger.debug("Common related elements for %d %+d %d: %s", e1, op, e2, common)
        return AMBIGUOUS
    return e3


def find_direct_predecessors(relations: RelationMap, e1: int, rel: int) -> List[int]:
    """Covering neighbours of an element: the elements directly below (LOWER) or above (HIGHER) it."""
    return find_direct_predecessors_by_rels(relations, relations.row(e1), rel)


def find_direct_predecessors_by_rels(relations: RelationMap, rels1: np.ndarray, rel: int) -> List[int]:
    assert len(rels1) == relations.n
    a: List[int] = []
    for e2 in np.flatnonzero(rels1 == -rel):
        e2 = int(e2)
        push = True
        i = 0
        while i < len(a):
            e3 = a[i]
            i += 1
            rel23 = relations.get(e2, e3)
            if rel23 == rel:
                # e2 lies beyond e3, it is not a direct predecessor
                push = False
                break
            if rel23 == -rel:
                if push:
                    a[i - 1] = e2
                    push = False
                else:
                    i -= 1
                    del a[i]
        if push:
            a.append(e2)
    return a


def find_elements_between(relations: RelationMap, lo: int, up: int) -> List[int]:
    """Elements strictly between `lo` and `up`."""
    r1 = relations.row(lo)
    r2 = relations.row(up)
    return [int(i) for i in np.flatnonzero((r1 == LOWER) & (r2 == HIGHER))]


# ----------------------------
# Relation vector of a new element
# ----------------------------

@dataclass
class GroupRelations:
    rels: np.ndarray            # relation of the new element to every existing element
    alias_element_no: int       # element the group collapses onto, or NO_ELEMENT


def create_new_element_relations(
    state: LatticeState,
    combs: Sequence[Combination],
    alias_element_no: int,
) -> GroupRelations:
    """Relation vector of an element defined by one or more equivalent combinations."""
    assert len(combs) > 0
    relss = [_combination_relations(state, comb) for comb in combs]
    return _merge_group_relations(relss, alias_element_no)


def update_all_element_relations(state: LatticeState) -> int:
    """Re-derive every element's relation row and merge it; returns the number of new relations."""
    updates = 0
    for element_no in range(state.elements.n):
        combs = state.elements.get(element_no).combinations
        if not combs:
            continue
        group = create_new_element_relations(state, combs, element_no)
        n2 = state.relations.merge_row(element_no, group.rels)
        if n2:
            logger.debug("update_all_element_relations: %d new relations for element %d", n2, element_no)
        updates += n2
    return updates


def _combination_relations(state: LatticeState, comb: Combination) -> np.ndarray:
    rels = np.zeros(state.relations.n, dtype=np.int8)
    n_pass = 0
    while True:
        n_pass += 1
        updates1 = _complete_combination_relations(rels, state.relations, comb)
        if updates1 == 0 and n_pass > 1:
            break
        updates2 = _complete_reverse_relations(rels, state, comb)
        if updates2 == 0 and (n_pass > 1 or updates1 == 0):
            break
    return rels


def _merge_group_relations(relss: List[np.ndarray], alias_element_no: int) -> GroupRelations:
    if len(relss) == 1:
        rels = relss[0].copy()
        if alias_element_no >= 0:
            rels[alias_element_no] = UNDEF
        return GroupRelations(rels=rels, alias_element_no=alias_element_no)
    n = len(relss[0])
    rels = np.zeros(n, dtype=np.int8)
    alias = alias_element_no
    for e in range(n):
        if e == alias:
            continue
        rel = int(relss[0][e])
        for other in relss[1:]:
            rel2 = int(other[e])
            if not rel2 or rel2 == rel:
                continue
            if not rel:
                rel = rel2
                continue
            if alias < 0:
                # the disagreeing element is the element of the whole group
                alias = e
                rel = UNDEF
                break
            raise ConflictingGroupRelations(
                f"Conflicting element group relations for element {e} (group alias {alias})."
            )
        rels[e] = rel
    return GroupRelations(rels=rels, alias_element_no=alias)


def _complete_combination_relations(rels: np.ndarray, relations: RelationMap, comb: Combination) -> int:
    """Forward rule: relations that follow from the operands of the combination."""
    comb_rel = operator_relation(comb.op)
    rel31 = -relations.row(comb.e1)
    rel32 = -relations.row(comb.e2)
    derived = np.zeros(len(rels), dtype=np.int8)
    derived[(rel31 == -comb_rel) | (rel32 == -comb_rel)] = comb_rel
    derived[(rel31 == comb_rel) & (rel32 == comb_rel)] = -comb_rel
    derived[comb.e1] = comb_rel
    derived[comb.e2] = comb_rel
    mask = (rels == UNDEF) & (derived != UNDEF)
    rels[mask] = derived[mask]
    return int(np.count_nonzero(mask))


def _complete_reverse_relations(rels: np.ndarray, state: LatticeState, comb: Combination) -> int:
    """Reverse rule: relations that follow from the combinations of the existing elements."""
    relations = state.relations
    updates = 0
    for e3 in range(relations.n):
        if rels[e3]:
            continue
        rel3 = _find_element_relation(relations, state.elements, comb, rels, e3)
        if not rel3:
            continue
        rels[e3] = rel3
        updates += 1
        updates += _complete_cascaded_relations(rels, relations.row(e3), rel3)
    return updates


def _find_element_relation(
    relations: RelationMap,
    table: ElementTable,
    comb: Combination,
    rels: np.ndarray,
    e3: int,
) -> int:
    for comb2 in table.get(e3).combinations:
        rel30 = combination_relation(int(rels[comb2.e1]), int(rels[comb2.e2]), comb2.op)
        if rel30:
            return -rel30
        rel = _find_monotone_relation(relations, comb, comb2)
        if rel:
            return rel
    return UNDEF


def _find_monotone_relation(relations: RelationMap, comb: Combination, comb2: Combination) -> int:
    if comb.op != comb2.op:
        return UNDEF
    rel1 = _operand_relation(relations, comb.e1, comb.e2, comb2.e1, comb2.e2)
    rel2 = _operand_relation(relations, comb.e1, comb.e2, comb2.e2, comb2.e1)
    assert not (rel1 and rel2 and rel1 != rel2)
    return rel1 if rel1 else rel2


def _operand_relation(relations: RelationMap, e1: int, e2: int, e3: int, e4: int) -> int:
    # e1 <= e3 and e2 <= e4 implies e1 + e2 <= e3 + e4, e1 * e2 <= e3 * e4 (and dually)
    rel1 = relations.get(e1, e3)
    rel2 = relations.get(e2, e4)
    eq1 = e1 == e3
    eq2 = e2 == e4
    assert not (eq1 and eq2)
    if eq1:
        return rel2
    if eq2:
        return rel1
    return rel1 if rel1 == rel2 else UNDEF


def _complete_cascaded_relations(rels1: np.ndarray, rels2: np.ndarray, rel12: int) -> int:
    mask = (rels1 == UNDEF) & (rels2 == rel12)
    rels1[mask] = rel12
    return int(np.count_nonzero(mask))


def find_new_element_alias_combination(table: ElementTable, rels: np.ndarray) -> int:
    """Existing element that a new relation vector must be equal to, or NO_ELEMENT.

    An element is an alias when the candidate is known to lie on one side of it
    while one of the element's combinations places it on the other side.
    """
    for element_no in range(table.n):
        for comb in table.get(element_no).combinations:
            if _is_alias_combination(element_no, comb, rels):
                logger.debug("Alias combination found: %s -> %d", comb, element_no)
                return element_no
    return NO_ELEMENT


def _is_alias_combination(alias_element_no: int, comb: Combination, rels: np.ndarray) -> bool:
    rel4 = int(rels[alias_element_no])
    if not rel4:
        return False
    rel3 = combination_relation(int(rels[comb.e1]), int(rels[comb.e2]), comb.op)
    return rel3 == rel4
