"""Text dumps of a (possibly partial) lattice state for debugging."""

from __future__ import annotations

from typing import Sequence

from .base import HIGHER, LOWER, LatticeState, NO_ELEMENT, format_relation
from .expressions import DEFAULT_SYMBOLS, OperatorSymbols
from .relations import find_direct_predecessors


def format_relations(rels: Sequence[int]) -> str:
    """One character per relation, `|` every 10 columns and ` |` every 100."""
    s = []
    for i, rel in enumerate(rels):
        if i > 0 and i % 10 == 0:
            s.append("|")
        if i > 0 and i % 100 == 0:
            s.append(" |")
        s.append(format_relation(int(rel)) if rel else "-")
    return "".join(s)


def dump_elements(state: LatticeState) -> str:
    lines = []
    for element_no, e in enumerate(state.elements.all()):
        line = f"{element_no}: {e.name}"
        if e.alias_names:
            line += " aliases: " + ", ".join(e.alias_names)
        lines.append(line)
    return "\n".join(lines)


def dump_combinations(state: LatticeState, numeric: bool, symbols: OperatorSymbols = DEFAULT_SYMBOLS) -> str:
    table = state.elements
    lines = []
    for element_no, e in enumerate(table.all()):
        line = f"{element_no}: {e.name}"
        for i, comb in enumerate(e.combinations):
            line += " = " if i == 0 else ", "
            if numeric:
                line += str(comb)
            else:
                line += f"{table.name(comb.e1)} {symbols.format(comb.op)} {table.name(comb.e2)}"
        lines.append(line)
    return "\n".join(lines)


def dump_relations(state: LatticeState) -> str:
    table = state.elements
    relations = state.relations
    lines = []
    for e1 in range(relations.n):
        for e2 in range(e1 + 1, relations.n):
            rel = relations.get(e1, e2)
            if rel:
                lines.append(f"{table.name(e1)} {format_relation(rel)} {table.name(e2)}")
    return "\n".join(lines)


def dump_raw_relations(state: LatticeState) -> str:
    relations = state.relations
    return "\n".join(f"{e}: {format_relations(relations.row(e))}" for e in range(relations.n))


def dump_combination_cache(state: LatticeState, dump_all: bool = False, symbols: OperatorSymbols = DEFAULT_SYMBOLS) -> str:
    table = state.elements
    parts = []
    for title, combo_map, sym in (
        ("Infimums", state.cache.infimums, symbols.inf),
        ("Supremums", state.cache.supremums, symbols.sup),
    ):
        lines = []
        for e1 in range(table.n):
            for e2 in range(e1 + 1, table.n):
                e3 = combo_map.get(e1, e2)
                if e3 == NO_ELEMENT and not dump_all:
                    continue
                lines.append(f"{table.name(e1)} {sym} {table.name(e2)} = {table.name(e3)}")
        parts.append(title + ":\n" + "\n".join(lines))
    return "\n\n".join(parts)


def dump_graph(state: LatticeState) -> str:
    table = state.elements
    lines = []
    for element_no in range(table.n):
        lower = find_direct_predecessors(state.relations, element_no, LOWER)
        higher = find_direct_predecessors(state.relations, element_no, HIGHER)
        lines.append(f"{table.names(lower)} => {table.name(element_no)} => {table.names(higher)}")
    return "\n".join(lines)


def dump_all(state: LatticeState, symbols: OperatorSymbols = DEFAULT_SYMBOLS) -> str:
    return (
        "Elements:\n" + dump_elements(state)
        + "\n\nCombinations expr:\n" + dump_combinations(state, False, symbols)
        + "\n\nCombinations numeric:\n" + dump_combinations(state, True, symbols)
        + "\n\nRaw relations:\n" + dump_raw_relations(state)
        + "\n\nGraph:\n" + dump_graph(state)
    )
