"""Modular deduction.

Modular law, in the form used below:

    a <= b  implies  a + (b * x) = b * (a + x)

and its dual a >= b implies a * (b + x) = b + (a * x).

Starting from one pending combination, the search walks every combination that the
law forces to be equal to it. The walk is depth first and runs on an explicit stack
of generator frames, so the depth cap raises a typed error instead of exhausting the
interpreter stack.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Set, Tuple

from .base import Combination, LatticeState, NO_ELEMENT, format_combinations, operator_relation
from .errors import ModularRecursionOverflow, MultipleModularAliases
from .expressions import eval_simple_combination

logger = logging.getLogger(__name__)


@dataclass
class ModularResult:
    mod_combs: List[Combination] = field(default_factory=list)
    # combinations forced equal to the seed that have no element yet
    missing_precursors: List[Combination] = field(default_factory=list)
    # (a + x) combinations that must be resolved before the group is complete
    mod_alias_element_no: int = NO_ELEMENT
    # existing element of the whole group, or NO_ELEMENT


def find_element_for_combination(state: LatticeState, comb: Combination) -> int:
    """Element of a combination by direct evaluation or from the cache, else NO_ELEMENT."""
    element_no = eval_simple_combination(state.relations, comb)
    if element_no >= 0:
        return element_no
    element_no = state.cache.get(comb)
    if element_no >= 0:
        return element_no
    return NO_ELEMENT


def _modular_triples(state: LatticeState, comb: Combination) -> Iterator[Tuple[int, int, int]]:
    # (a, b, x) candidates: one operand is a, the other operand is a combination b op' x
    for e1, e2 in ((comb.e1, comb.e2), (comb.e2, comb.e1)):
        for comb2 in state.elements.get(e2).combinations:
            if comb2.op == comb.op:
                continue
            yield e1, comb2.e1, comb2.e2
            yield e1, comb2.e2, comb2.e1


def find_modular_alias_combinations(comb0: Combination, state: LatticeState, max_depth: int = 500) -> ModularResult:
    result = ModularResult()
    element_no0 = state.cache.get(comb0)
    if element_no0 >= 0:
        result.mod_alias_element_no = element_no0
    else:
        result.mod_combs.append(comb0)

    processed: Set[Combination] = {comb0}
    stack: List[Tuple[Combination, Iterator[Tuple[int, int, int]]]] = [(comb0, _modular_triples(state, comb0))]

    while stack:
        comb, triples = stack[-1]
        step = next(triples, None)
        if step is None:
            stack.pop()
            continue
        a, b, x = step
        op = comb.op
        if state.relations.get(a, b) != -operator_relation(op):
            continue

        comb3 = Combination(a, x, op)                 # (a + x)
        element_no3 = find_element_for_combination(state, comb3)
        if element_no3 < 0:
            if comb3 not in result.missing_precursors:
                result.missing_precursors.append(comb3)
            continue

        comb4 = Combination(b, element_no3, -op)      # b * (a + x)
        if comb4 in processed:
            continue
        element_no4 = find_element_for_combination(state, comb4)
        if element_no4 >= 0:
            if result.mod_alias_element_no >= 0 and result.mod_alias_element_no != element_no4:
                raise MultipleModularAliases(
                    f"Multiple modular alias elements found for {comb0}: "
                    f"({result.mod_alias_element_no}, {element_no4})."
                )
            result.mod_alias_element_no = element_no4
        else:
            result.mod_combs.append(comb4)

        processed.add(comb4)
        if len(stack) >= max_depth:
            logger.debug(
                "Modular alias combinations found so far for %s: %s, current: %s",
                comb0, format_combinations(result.mod_combs), comb4,
            )
            raise ModularRecursionOverflow(f"Too many modular recursions for {comb0} (depth {len(stack)}).")
        stack.append((comb4, _modular_triples(state, comb4)))

    return result
