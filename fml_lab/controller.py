from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .base import (
    HIGHER,
    LOWER,
    NO_ELEMENT,
    OPERATORS,
    SUP,
    Combination,
    LatticeState,
    format_combinations,
    operator_relation,
)
from .errors import (
    CombinationCacheConflict,
    ConflictingAliasElements,
    ElementCountMismatch,
    IterationLimitExceeded,
)
from .expressions import OperatorSymbols, combination_complexity, combination_expression, complexity, expr_depth, expr_width
from .modular import ModularResult, find_modular_alias_combinations
from .relations import (
    create_new_element_relations,
    find_elements_between,
    find_new_element_alias_combination,
    max_relation,
    min_relation,
)
from .verify import verify_lattice_consistency, verify_relations

logger = logging.getLogger(__name__)


# ----------------------------
# Configuration
# ----------------------------

@dataclass
class GenerationConfig:
    max_iterations_factor: int = 3        # iteration bound = factor * target elements
    max_modular_depth: int = 500          # depth cap of the modular deduction stack
    backtrack_slack: int = 100            # extra seeds per step before giving up
    check_consistency: bool = False       # run the verifier after every step
    check_relations: bool = False         # closure / re-derivation self check after every step
    verify_result: bool = True            # run the verifier once after generation
    progress_interval: float = 0.5        # seconds between progress messages
    inf_symbol: str = "*"
    sup_symbol: str = "+"

    def symbols(self) -> OperatorSymbols:
        return OperatorSymbols(inf=self.inf_symbol, sup=self.sup_symbol)


RelationDef = Tuple[str, str, int]


# ----------------------------
# Controller
# ----------------------------

class LatticeController:
    """Generates a free modular lattice one element (or alias group) per step.

    The controller owns the lattice state; relation derivation and modular
    deduction operate on it by reference.
    """

    def __init__(
        self,
        max_elements: int,
        generator_names: Sequence[str],
        generator_relations: Sequence[RelationDef] = (),
        config: Optional[GenerationConfig] = None,
    ):
        self.config = config if config is not None else GenerationConfig()
        self.symbols = self.config.symbols()
        self.max_elements = int(max_elements)
        self.generator_element_count = len(generator_names)
        self.state = LatticeState(self.max_elements)
        self._last_min_complexity = -1
        self._load_generator_elements(generator_names, generator_relations)

    @property
    def elements(self):
        return self.state.elements

    @property
    def relations(self):
        return self.state.relations

    @property
    def cache(self):
        return self.state.cache

    def _load_generator_elements(self, names: Sequence[str], relation_defs: Sequence[RelationDef]) -> None:
        for name in names:
            self.elements.add(name, True, None, 0, 1)
        self.relations.n = self.elements.n
        for name1, name2, rel in relation_defs:
            e1 = self.elements.lookup(name1)
            e2 = self.elements.lookup(name2)
            self.relations.set(e1, e2, int(rel))
        self.relations.complete_chains()

    # ----------------------------
    # One generation step
    # ----------------------------

    def create_new_element(self) -> Optional[str]:
        """Create a new element or register an alias group.

        Returns an info line about what was done, or None when no new
        combination can be found (the lattice is complete).
        """
        mr = self._find_new_element_combinations()
        if mr is None:
            return None
        combs = sorted(mr.mod_combs, key=lambda c: combination_complexity(self.elements, c))
        group = create_new_element_relations(self.state, combs, mr.mod_alias_element_no)
        rels = group.rels
        alias_element_no = group.alias_element_no

        alias_element_no2 = find_new_element_alias_combination(self.elements, rels)
        if alias_element_no2 >= 0:
            if alias_element_no >= 0 and alias_element_no2 != alias_element_no:
                raise ConflictingAliasElements(
                    f"Different alias elements found for {format_combinations(combs)}: "
                    f"({alias_element_no}, {alias_element_no2})."
                )
            alias_element_no = alias_element_no2

        if alias_element_no >= 0:
            for comb in combs:
                self._register_alias_combination(alias_element_no, comb, rels)
            self._process_secondary_aliases_for_target_element(alias_element_no)
            return f"Alias: {format_combinations(combs)} -> {alias_element_no}"

        new_element_no = self._register_new_element(combs, rels)
        self._process_secondary_aliases_for_source_element(new_element_no)
        self._process_secondary_aliases_for_target_element(new_element_no)
        return f"{new_element_no}: {format_combinations(combs)}"

    def check_step(self) -> None:
        if self.config.check_relations:
            verify_relations(self.state)
        if self.config.check_consistency:
            self.verify_lattice_consistency()

    def verify_lattice_consistency(self) -> None:
        verify_lattice_consistency(self.state, self.symbols, self.config.max_modular_depth)

    def expression(self, comb: Combination, simplify: bool = False) -> str:
        return combination_expression(self.elements, comb, simplify, self.symbols)

    def _register_alias_combination(self, alias_element_no: int, comb: Combination, rels: np.ndarray) -> None:
        self.elements.add_alias(alias_element_no, self.expression(comb), comb)
        self.cache.set(comb, alias_element_no)
        n = self.relations.merge_row(alias_element_no, rels)
        if n:
            logger.debug("Relations updated for alias %d (%d new).", alias_element_no, n)

    def _register_new_element(self, combs: List[Combination], rels: np.ndarray) -> int:
        if self.elements.n >= self.max_elements:
            raise ElementCountMismatch(
                f"Element capacity {self.max_elements} exhausted by {format_combinations(combs)}."
            )
        comb0 = combs[0]
        full_expr0 = self.expression(comb0)
        expr0 = self.expression(comb0, True)
        if min_relation(rels) == HIGHER:
            name = "1"
        elif max_relation(rels) == LOWER:
            name = "0"
        else:
            name = expr0
        e1 = self.elements.get(comb0.e1)
        e2 = self.elements.get(comb0.e2)
        element_no = self.elements.add(name, False, comb0, expr_depth(e1, e2, comb0.op), expr_width(e1, e2))
        if expr0 != name:
            self.elements.add_alias(element_no, expr0)
        if full_expr0 != expr0:
            self.elements.add_alias(element_no, full_expr0)
        for comb in combs[1:]:
            self.elements.add_alias(element_no, self.expression(comb, True), comb)
        self.cache.set_multi(combs, element_no)
        self.relations.add_row(rels)
        return element_no

    # ----------------------------
    # Seed search
    # ----------------------------

    def _find_new_element_combinations(self) -> Optional[ModularResult]:
        checked: List[Combination] = []
        backlog: List[Combination] = []
        checked_element_no = -1
        candidate: Optional[ModularResult] = None
        candidate_iteration = -1
        iteration = 0
        while True:
            comb: Optional[Combination] = None
            element_no = NO_ELEMENT
            if backlog:
                comb = backlog.pop(0)
            if comb is None and checked_element_no < self.elements.n - 1:
                checked_element_no += 1
                element_no = checked_element_no
                e = self.elements.get(element_no)
                if not e.combinations:
                    continue
                comb = e.combinations[0]
            if comb is None and candidate is not None:
                logger.debug("Selecting candidate from iteration %d.", candidate_iteration)
                return candidate
            if comb is None and checked_element_no == self.elements.n - 1:
                checked_element_no += 1
                comb = self._find_min_complex_new_element_combination()
                if comb is None:
                    return None
            if comb is None:
                raise RuntimeError("Modular backtrack loop ran out of seed combinations.")
            if comb in checked:
                continue
            if iteration > self.max_elements + self.config.backtrack_slack:
                raise IterationLimitExceeded("Too many modular backtrack iterations.")
            iteration += 1

            mr = find_modular_alias_combinations(comb, self.state, self.config.max_modular_depth)
            if mr.mod_combs or mr.missing_precursors or mr.mod_alias_element_no == NO_ELEMENT:
                logger.debug(
                    "Iteration %d: %s, modular group: %s, missing precursors: %s, alias element: %s",
                    iteration, comb, format_combinations(mr.mod_combs),
                    format_combinations(mr.missing_precursors), self.elements.name(mr.mod_alias_element_no),
                )
            if mr.mod_alias_element_no >= 0 and element_no >= 0 and mr.mod_alias_element_no != element_no:
                raise ConflictingAliasElements(
                    f"Conflicting modular alias element for {comb}: {mr.mod_alias_element_no} != {element_no}."
                )
            if mr.mod_combs and (not mr.missing_precursors or mr.mod_alias_element_no >= 0):
                return mr
            if mr.mod_combs and candidate is None:
                candidate = mr
                candidate_iteration = iteration
            checked.extend(mr.mod_combs)
            backlog.extend(mr.missing_precursors)

    def _find_min_complex_new_element_combination(self) -> Optional[Combination]:
        """Unrelated, not yet combined pair of lowest complexity.

        A pair that matches the previous minimum is taken at once without
        finishing the scan.
        """
        n = self.elements.n
        assert self.relations.n == n
        best: Optional[Tuple[int, int, int]] = None
        min_complexity = None
        last_min = self._last_min_complexity
        for e2 in range(1, n):
            for e1 in range(e2):
                if self.relations.related(e1, e2):
                    continue
                for op in OPERATORS:
                    if self.cache.get2(e1, e2, op) >= 0:
                        continue
                    c = complexity(self.elements, e1, e2, op)
                    if c == last_min:
                        logger.debug("Minimum complexity combination: %d%s%d complexity=%d", e1, self.symbols.format(op), e2, c)
                        return Combination(e1, e2, op)
                    if min_complexity is None or c < min_complexity:
                        min_complexity = c
                        best = (e1, e2, op)
        if best is None:
            return None
        e1, e2, op = best
        logger.debug("Minimum complexity combination: %d%s%d complexity=%d", e1, self.symbols.format(op), e2, min_complexity)
        self._last_min_complexity = min_complexity
        return Combination(e1, e2, op)

    # ----------------------------
    # Secondary aliases
    # ----------------------------
    # A secondary alias is a combination that is forced onto an element but is not
    # needed to build the lattice graph. It only goes into the combination cache.
    #   e1 >= e3, e2 >= e4, e1 <= e3+e4, e2 <= e3+e4 implies e1+e2 = e3+e4
    #   e1 <= e3, e2 <= e4, e1 >= e3*e4, e2 >= e3*e4 implies e1*e2 = e3*e4

    def _process_secondary_aliases_for_target_element(self, target_element_no: int) -> None:
        for comb in self.elements.get(target_element_no).combinations:
            self._process_secondary_aliases_for_target_comb(comb, target_element_no)

    def _process_secondary_aliases_for_source_element(self, source_element_no: int) -> None:
        for target_element_no in range(self.elements.n):
            rel = self.relations.get(target_element_no, source_element_no)
            if not rel:
                continue
            for comb in self.elements.get(target_element_no).combinations:
                op_rel = operator_relation(comb.op)
                if op_rel != rel:
                    continue
                if self.relations.get(source_element_no, comb.e1) == op_rel:
                    self._process_secondary_aliases_fixed(source_element_no, comb.e2, comb.op, target_element_no)
                elif self.relations.get(source_element_no, comb.e2) == op_rel:
                    self._process_secondary_aliases_fixed(source_element_no, comb.e1, comb.op, target_element_no)

    def _between(self, start: int, op: int, target_element_no: int) -> List[int]:
        if op == SUP:
            lo, up = start, target_element_no
        else:
            lo, up = target_element_no, start
        return find_elements_between(self.relations, lo, up) + [start]

    def _process_secondary_aliases_for_target_comb(self, comb: Combination, target_element_no: int) -> None:
        a1 = self._between(comb.e1, comb.op, target_element_no)
        a2 = self._between(comb.e2, comb.op, target_element_no)
        combo_map = self.cache.combo_map(comb.op)
        for e1 in a1:
            for e2 in a2:
                self._set_secondary_alias(combo_map, e1, e2, comb.op, target_element_no)

    def _process_secondary_aliases_fixed(self, e1_fixed: int, e2_start: int, op: int, target_element_no: int) -> None:
        combo_map = self.cache.combo_map(op)
        for e2 in self._between(e2_start, op, target_element_no):
            self._set_secondary_alias(combo_map, e1_fixed, e2, op, target_element_no)

    def _set_secondary_alias(self, combo_map, e1: int, e2: int, op: int, target_element_no: int) -> None:
        e3 = combo_map.get(e1, e2)
        if e3 == target_element_no:
            return
        if e3 != NO_ELEMENT:
            raise CombinationCacheConflict(
                f"Lattice consistency error for secondary alias combination "
                f"{e1}{self.symbols.format(op)}{e2}: cached {e3}, expected {target_element_no}."
            )
        logger.debug("Secondary alias: %d%s%d -> %d", e1, self.symbols.format(op), e2, target_element_no)
        combo_map.set(e1, e2, target_element_no)
