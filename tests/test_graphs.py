import math

import numpy as np

from fml_lab.generate import lattice_structure
from fml_lab.graphs import (
    corner_info,
    distance,
    distance_matrix,
    distances_from,
    hasse_diagram,
    lattice_graph_edges,
    lattice_graph_layout,
    lattice_width,
    longest_path_depth,
)


def test_covering_edges(pair_controller):
    assert lattice_graph_edges(pair_controller.relations) == [(0, 3), (1, 3), (2, 0), (2, 1)]


def test_hasse_diagram_and_rank(pair_controller):
    table = pair_controller.elements
    edges = lattice_graph_edges(pair_controller.relations)
    G = hasse_diagram(table.n, edges, table.all_names())
    assert G.nodes[3]["name"] == "1"
    rank = longest_path_depth(G)
    assert rank == {0: 1, 1: 1, 2: 0, 3: 2}
    assert lattice_width(G) == 2


def test_distances_are_symmetric(lattice_2_2):
    ls = lattice_structure(lattice_2_2, with_layout=False)
    D = distance_matrix(ls.elements, ls.edges)
    assert D.shape == (18, 18)
    assert np.allclose(D, D.T)
    assert not np.diag(D).any()
    assert np.isfinite(D).all()
    G = hasse_diagram(ls.elements, ls.edges)
    d0 = distances_from(G, ls.bottom_element_no)
    assert np.array_equal(d0, D[ls.bottom_element_no].astype(int))
    assert distance(G, 3, 7) == distance(G, 7, 3) == int(D[3, 7])


def test_corner_info(lattice_2_2):
    info = corner_info(lattice_2_2.relations, lattice_2_2.generator_element_count)
    # a < b and c < d share corners
    assert info.corner_count == 2
    assert info.corner_generators == [[0, 1], [2, 3]]
    assert info.generator_corner == [0, 0, 1, 1]


def test_layout(lattice_2_2):
    ls = lattice_structure(lattice_2_2)
    layout = ls.layout
    assert len(layout.positions) == 18
    assert layout.positions[ls.bottom_element_no][1] == -1.0
    assert layout.positions[ls.top_element_no][1] == 1.0
    for x, y, z in layout.positions:
        assert all(math.isfinite(v) for v in (x, y, z))
        assert -1.0 <= y <= 1.0
        assert round(x, 6) == x
    G = hasse_diagram(ls.elements, ls.edges)
    assert layout.graph_height == longest_path_depth(G)[ls.top_element_no]


def test_pair_layout(pair_controller):
    table = pair_controller.elements
    G = hasse_diagram(table.n, lattice_graph_edges(pair_controller.relations))
    layout = lattice_graph_layout(table, G, pair_controller.relations, 2)
    assert layout.graph_height == 2
    assert layout.graph_width == 2
    a = layout.positions[0]
    assert a[1] == 0.0
    assert a[0] == round(math.cos(0.19 * 2 * math.pi / 2), 6)
