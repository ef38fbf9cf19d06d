import numpy as np

from fml_lab.base import HIGHER, INF, LOWER, NO_ELEMENT, SUP, Combination, LatticeState
from fml_lab.expressions import (
    OperatorSymbols,
    combination_complexity,
    combination_expression,
    combination_expressions,
    eval_simple_combination,
)


def _state_with_join():
    # a, b, c generators and a+b
    state = LatticeState(8)
    for name in "abc":
        state.elements.add(name, True, None, 0, 1)
    state.relations.n = 3
    state.elements.add("a+b", False, Combination(0, 1, SUP), 0, 2)
    state.relations.add_row(np.array([HIGHER, HIGHER, 0]))
    return state


def test_brackets_and_simplification():
    state = _state_with_join()
    table = state.elements
    assert combination_expression(table, Combination(3, 2, INF)) == "c*(a+b)"
    assert combination_expression(table, Combination(2, 3, SUP)) == "c+(a+b)"
    assert combination_expression(table, Combination(2, 3, SUP), simplify=True) == "c+a+b"
    assert combination_expression(table, Combination(2, 3, INF), simplify=True) == "c*(a+b)"


def test_custom_symbols():
    table = _state_with_join().elements
    sym = OperatorSymbols(inf="^", sup="v")
    assert combination_expression(table, Combination(0, 1, INF), symbols=sym) == "a^b"
    assert combination_expressions(table, [Combination(0, 1, INF)], True, sym) == "a^b"
    assert combination_expressions(table, [Combination(0, 1, INF), Combination(2, 3, SUP)], False, sym) == "[a^b, cv(a+b)]"


def test_complexity():
    table = _state_with_join().elements
    assert combination_complexity(table, Combination(0, 1, INF)) == 2000
    # width 3, one bracket level
    assert combination_complexity(table, Combination(2, 3, INF)) == 3001
    assert combination_complexity(table, Combination(2, 3, SUP)) == 3000


def test_eval_simple_combination():
    state = _state_with_join()
    rm = state.relations
    assert eval_simple_combination(rm, Combination(1, 1, INF)) == 1
    assert eval_simple_combination(rm, Combination(0, 3, SUP)) == 3
    assert eval_simple_combination(rm, Combination(0, 3, INF)) == 0
    assert eval_simple_combination(rm, Combination(0, 2, SUP)) == NO_ELEMENT
    assert rm.get(0, 3) == LOWER
