import pytest

from fml_lab.catalog import LatticeDef
from fml_lab.generate import generate_lattice_controller

# Free modular lattice on two unrelated generators: a, b, a*b, a+b.
PAIR = LatticeDef(4, "1-1", ("a", "b"))


@pytest.fixture
def pair_controller():
    return generate_lattice_controller(PAIR)


@pytest.fixture(scope="session")
def lattice_2_2():
    return generate_lattice_controller("2-2")


def element_with_expression(table, expr):
    """Element number whose name or one of whose alias names equals expr."""
    for i, e in enumerate(table.all()):
        if e.name == expr or expr in e.alias_names:
            return i
    raise AssertionError(f"no element for {expr}")
