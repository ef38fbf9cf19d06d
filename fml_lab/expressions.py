from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .base import INF, SUP, NO_ELEMENT, Combination, Element, ElementTable, RelationMap, operator_relation


@dataclass(frozen=True)
class OperatorSymbols:
    inf: str = "*"
    sup: str = "+"

    def format(self, op: int) -> str:
        if op == INF:
            return self.inf
        if op == SUP:
            return self.sup
        return "err"


DEFAULT_SYMBOLS = OperatorSymbols()


def combination_expression(
    table: ElementTable,
    comb: Combination,
    simplify: bool = False,
    symbols: OperatorSymbols = DEFAULT_SYMBOLS,
) -> str:
    """Expression text of a combination built from the names of its operands.

    An operand that is itself an expression is bracketed, unless `simplify` is set
    and its top level operator equals the operator of the combination.
    """
    e1 = table.get(comb.e1)
    e2 = table.get(comb.e2)
    expr1 = e1.name
    expr2 = e2.name
    if e1.name_operator is not None and (e1.name_operator != comb.op or not simplify):
        expr1 = "(" + expr1 + ")"
    if e2.name_operator is not None and (e2.name_operator != comb.op or not simplify):
        expr2 = "(" + expr2 + ")"
    return expr1 + symbols.format(comb.op) + expr2


def combination_expressions(
    table: ElementTable,
    combs: Sequence[Combination],
    omit_brackets_if_single: bool = False,
    symbols: OperatorSymbols = DEFAULT_SYMBOLS,
) -> str:
    s = ", ".join(combination_expression(table, c, False, symbols) for c in combs)
    return s if (omit_brackets_if_single and len(combs) == 1) else "[" + s + "]"


def eval_simple_combination(relations: RelationMap, comb: Combination) -> int:
    """Result of a combination whose result is one of its operands, else NO_ELEMENT."""
    if comb.e1 == comb.e2:
        return comb.e1
    rel = relations.get(comb.e1, comb.e2)
    if not rel:
        return NO_ELEMENT
    return comb.e1 if rel == operator_relation(comb.op) else comb.e2


# ----------------------------
# Complexity metrics
# ----------------------------

def expr_depth(e1: Element, e2: Element, op: int) -> int:
    d1 = 1 if (e1.combinations and e1.combinations[0].op != op) else 0
    d2 = 1 if (e2.combinations and e2.combinations[0].op != op) else 0
    return max(e1.expr_depth + d1, e2.expr_depth + d2)


def expr_width(e1: Element, e2: Element) -> int:
    return e1.expr_width + e2.expr_width


def complexity(table: ElementTable, e1: int, e2: int, op: int) -> int:
    """width * 1000 + depth of the expression `e1 op e2`."""
    a = table.get(e1)
    b = table.get(e2)
    return expr_width(a, b) * 1000 + expr_depth(a, b, op)


def combination_complexity(table: ElementTable, comb: Combination) -> int:
    return complexity(table, comb.e1, comb.e2, comb.op)
