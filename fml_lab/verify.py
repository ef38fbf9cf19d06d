from __future__ import annotations

import logging

from .base import AMBIGUOUS, LatticeState, NO_ELEMENT, format_combinations
from .errors import DuplicateModularElements, IncompleteRelations, PrimaryBoundDrift
from .expressions import DEFAULT_SYMBOLS, OperatorSymbols, combination_expression
from .modular import find_modular_alias_combinations
from .relations import find_infimum_or_supremum, update_all_element_relations

logger = logging.getLogger(__name__)


def verify_primary_bounds(state: LatticeState, symbols: OperatorSymbols = DEFAULT_SYMBOLS) -> None:
    """Every combination of every element must still evaluate to that element."""
    table = state.elements
    for element_no3 in range(table.n):
        for comb in table.get(element_no3).combinations:
            element_no4 = find_infimum_or_supremum(state.relations, comb.e1, comb.e2, comb.op)
            if element_no4 == element_no3:
                continue
            expr = combination_expression(table, comb, False, symbols)
            if element_no4 == AMBIGUOUS:
                raise PrimaryBoundDrift(f"Primary infimum/supremum is ambiguous: {expr}")
            raise PrimaryBoundDrift(
                f"Primary infimum/supremum has changed: {expr} = {table.name(element_no3)} | {table.name(element_no4)}"
            )


def verify_modular_groups(state: LatticeState, max_depth: int = 500) -> None:
    """Modular deduction from each element's first combination must not lead to another element."""
    table = state.elements
    for element_no in range(table.n):
        e = table.get(element_no)
        if not e.combinations:
            continue
        mr = find_modular_alias_combinations(e.combinations[0], state, max_depth)
        if mr.missing_precursors:
            logger.debug(
                "Possibly incomplete modular element group %s, missing precursors: %s",
                e.name, format_combinations(mr.missing_precursors),
            )
        if mr.mod_alias_element_no != NO_ELEMENT and mr.mod_alias_element_no != element_no:
            raise DuplicateModularElements(
                f"Duplicate modular elements: {e.name} {table.name(mr.mod_alias_element_no)}"
            )
        if mr.mod_combs:
            logger.debug("Missing modular combinations for %s: %s", e.name, format_combinations(mr.mod_combs))


def verify_relations(state: LatticeState) -> None:
    """Closure and full re-derivation must not find anything new."""
    n1 = state.relations.complete_chains()
    if n1:
        raise IncompleteRelations(f"Transitive closure added {n1} relations.")
    n2 = update_all_element_relations(state)
    if n2:
        raise IncompleteRelations(f"Re-derivation of the element relations added {n2} relations.")


def verify_unique_rows(state: LatticeState) -> None:
    relations = state.relations
    for element_no in range(relations.n):
        other = relations.find_row(relations.row(element_no), True)
        if other != element_no:
            raise DuplicateModularElements(
                f"Elements {state.elements.name(element_no)} and {state.elements.name(other)} have identical relations."
            )


def verify_lattice_consistency(state: LatticeState, symbols: OperatorSymbols = DEFAULT_SYMBOLS, max_depth: int = 500) -> None:
    verify_modular_groups(state, max_depth)
    verify_primary_bounds(state, symbols)
