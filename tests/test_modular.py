import numpy as np
import pytest

from fml_lab.base import HIGHER, INF, LOWER, NO_ELEMENT, SUP, Combination, LatticeState
from fml_lab.errors import ModularRecursionOverflow, MultipleModularAliases
from fml_lab.modular import find_element_for_combination, find_modular_alias_combinations


def _state(with_join=True):
    """a < b, x unrelated; b*x (3) and optionally a+x (4)."""
    state = LatticeState(16)
    for name in ("a", "b", "x"):
        state.elements.add(name, True, None, 0, 1)
    state.relations.n = 3
    state.relations.set(0, 1, LOWER)

    state.elements.add("b*x", False, Combination(1, 2, INF), 1, 2)
    state.relations.add_row(np.array([0, LOWER, LOWER]))
    state.cache.set(Combination(1, 2, INF), 3)

    if with_join:
        state.elements.add("a+x", False, Combination(0, 2, SUP), 1, 2)
        state.relations.add_row(np.array([HIGHER, 0, HIGHER, HIGHER]))
        state.cache.set(Combination(0, 2, SUP), 4)
    return state


def test_modular_group():
    # a + (b*x) = b * (a+x)
    state = _state()
    mr = find_modular_alias_combinations(Combination(0, 3, SUP), state)
    assert mr.mod_combs == [Combination(0, 3, SUP), Combination(1, 4, INF)]
    assert mr.missing_precursors == []
    assert mr.mod_alias_element_no == NO_ELEMENT


def test_missing_precursor():
    state = _state(with_join=False)
    mr = find_modular_alias_combinations(Combination(0, 3, SUP), state)
    assert mr.mod_combs == [Combination(0, 3, SUP)]
    assert mr.missing_precursors == [Combination(0, 2, SUP)]


def test_existing_alias_element():
    state = _state()
    state.cache.set(Combination(1, 4, INF), 5)
    mr = find_modular_alias_combinations(Combination(0, 3, SUP), state)
    assert mr.mod_alias_element_no == 5
    assert mr.mod_combs == [Combination(0, 3, SUP)]


def test_multiple_aliases_are_fatal():
    state = _state()
    state.cache.set(Combination(0, 3, SUP), 6)
    state.cache.set(Combination(1, 4, INF), 5)
    with pytest.raises(MultipleModularAliases):
        find_modular_alias_combinations(Combination(0, 3, SUP), state)


def test_depth_cap():
    state = _state()
    with pytest.raises(ModularRecursionOverflow):
        find_modular_alias_combinations(Combination(0, 3, SUP), state, max_depth=1)


def test_find_element_for_combination():
    state = _state()
    assert find_element_for_combination(state, Combination(0, 1, SUP)) == 1
    assert find_element_for_combination(state, Combination(0, 2, SUP)) == 4
    assert find_element_for_combination(state, Combination(0, 2, INF)) == NO_ELEMENT


def test_generated_element_is_its_own_alias(pair_controller):
    state = pair_controller.state
    mr = find_modular_alias_combinations(Combination(0, 1, INF), state)
    assert mr.mod_alias_element_no == state.elements.lookup("0")
    assert mr.mod_combs == []
