from fml_lab.base import HIGHER, LOWER, UNDEF
from fml_lab.dump import (
    dump_all,
    dump_combination_cache,
    dump_combinations,
    dump_graph,
    dump_relations,
    format_relations,
)


def test_format_relations():
    assert format_relations([UNDEF, HIGHER, LOWER]) == "-><"
    s = format_relations([UNDEF] * 11)
    assert s == "-" * 10 + "|" + "-"
    s = format_relations([UNDEF] * 101)
    assert s.endswith("-| |-")


def test_dumps(pair_controller):
    state = pair_controller.state
    assert dump_combinations(state, True).splitlines()[2] == "2: 0 = 0*1"
    assert dump_combinations(state, False).splitlines()[3] == "3: 1 = a + b"
    assert "a < 1" in dump_relations(state).splitlines()
    assert dump_graph(state).splitlines()[2] == "[] => 0 => [a, b]"
    cache = dump_combination_cache(state)
    assert "a * b = 0" in cache
    assert "a + b = 1" in cache


def test_dump_all(pair_controller):
    s = dump_all(pair_controller.state, pair_controller.symbols)
    for title in ("Elements:", "Combinations expr:", "Combinations numeric:", "Raw relations:", "Graph:"):
        assert title in s
    assert "2: 0 aliases: a*b" in s
