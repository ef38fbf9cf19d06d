import numpy as np
import pytest

from fml_lab.base import AMBIGUOUS, HIGHER, INF, LOWER, NO_ELEMENT, SUP, UNDEF, RelationMap
from fml_lab.errors import ConflictingGroupRelations
from fml_lab.relations import (
    _merge_group_relations,
    combination_relation,
    find_direct_predecessors,
    find_elements_between,
    find_infimum_or_supremum,
    find_lowest_or_highest_element,
    max_relation,
    min_relation,
)


def _chain(n):
    rm = RelationMap(n)
    rm.n = n
    for i in range(n - 1):
        rm.set(i, i + 1, LOWER)
    rm.complete_chains()
    return rm


def test_combination_relation_rules():
    # e3 above both operands of a join lies above the join
    assert combination_relation(HIGHER, HIGHER, SUP) == LOWER
    assert combination_relation(LOWER, UNDEF, SUP) == HIGHER
    assert combination_relation(UNDEF, UNDEF, SUP) == UNDEF
    assert combination_relation(LOWER, LOWER, INF) == HIGHER
    assert combination_relation(UNDEF, HIGHER, INF) == LOWER
    assert combination_relation(HIGHER, LOWER, INF) == LOWER


def test_min_max_relation():
    assert min_relation(np.array([], dtype=np.int8)) == HIGHER
    assert max_relation(np.array([], dtype=np.int8)) == LOWER
    assert min_relation(np.array([HIGHER, HIGHER], dtype=np.int8)) == HIGHER
    assert min_relation(np.array([HIGHER, UNDEF], dtype=np.int8)) == UNDEF
    assert max_relation(np.array([LOWER, LOWER], dtype=np.int8)) == LOWER


def test_lowest_or_highest_on_chain():
    rm = _chain(4)
    assert find_lowest_or_highest_element(rm, [], HIGHER) == NO_ELEMENT
    assert find_lowest_or_highest_element(rm, [2], HIGHER) == 2
    assert find_lowest_or_highest_element(rm, [1, 3, 0], HIGHER) == 3
    assert find_lowest_or_highest_element(rm, [1, 3, 0], LOWER) == 0


def test_bounds_on_chain():
    rm = _chain(3)
    assert find_infimum_or_supremum(rm, 0, 2, INF) == 0
    assert find_infimum_or_supremum(rm, 0, 2, SUP) == 2


def test_bounds_of_unrelated_elements():
    # 2 and 3 are both below 0 and 1, 2 < 3
    rm = RelationMap(4)
    rm.n = 4
    for lo in (2, 3):
        for up in (0, 1):
            rm.set(lo, up, LOWER)
    assert find_infimum_or_supremum(rm, 0, 1, SUP) == NO_ELEMENT
    assert find_infimum_or_supremum(rm, 0, 1, INF) == AMBIGUOUS
    rm.set(2, 3, LOWER)
    assert find_infimum_or_supremum(rm, 0, 1, INF) == 3


def test_direct_predecessors_and_between():
    rm = _chain(3)
    assert find_direct_predecessors(rm, 2, LOWER) == [1]
    assert find_direct_predecessors(rm, 0, HIGHER) == [1]
    assert find_direct_predecessors(rm, 0, LOWER) == []
    assert find_elements_between(rm, 0, 2) == [1]
    assert find_elements_between(rm, 0, 1) == []


def test_direct_predecessors_of_diamond():
    # 0 < 1, 0 < 2, 1 < 3, 2 < 3
    rm = RelationMap(4)
    rm.n = 4
    for lo, up in ((0, 1), (0, 2), (1, 3), (2, 3)):
        rm.set(lo, up, LOWER)
    rm.complete_chains()
    assert sorted(find_direct_predecessors(rm, 3, LOWER)) == [1, 2]
    assert sorted(find_direct_predecessors(rm, 0, HIGHER)) == [1, 2]


def test_merge_group_relations():
    a = np.array([HIGHER, UNDEF, LOWER], dtype=np.int8)
    b = np.array([HIGHER, LOWER, LOWER], dtype=np.int8)
    group = _merge_group_relations([a, b], NO_ELEMENT)
    assert group.rels.tolist() == [HIGHER, LOWER, LOWER]
    assert group.alias_element_no == NO_ELEMENT


def test_disagreement_collapses_onto_element():
    a = np.array([HIGHER, HIGHER], dtype=np.int8)
    b = np.array([HIGHER, LOWER], dtype=np.int8)
    group = _merge_group_relations([a, b], NO_ELEMENT)
    assert group.alias_element_no == 1
    assert group.rels.tolist() == [HIGHER, UNDEF]


def test_disagreement_with_known_alias_is_fatal():
    a = np.array([UNDEF, HIGHER, HIGHER], dtype=np.int8)
    b = np.array([UNDEF, LOWER, HIGHER], dtype=np.int8)
    with pytest.raises(ConflictingGroupRelations):
        _merge_group_relations([a, b], 0)
