from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import networkx as nx
import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import shortest_path

from .base import HIGHER, ElementTable, RelationMap
from .relations import find_direct_predecessors


def lattice_graph_edges(relations: RelationMap) -> List[Tuple[int, int]]:
    """Covering edges (lower, higher) of the lattice order."""
    edges: List[Tuple[int, int]] = []
    for element_no1 in range(relations.n):
        for element_no2 in find_direct_predecessors(relations, element_no1, HIGHER):
            edges.append((element_no1, element_no2))
    return edges


def hasse_diagram(n: int, edges: Sequence[Tuple[int, int]], names: Sequence[str] = ()) -> nx.DiGraph:
    """Covering graph as a DiGraph pointing upwards; node attribute `name` when names are given."""
    G = nx.DiGraph()
    G.add_nodes_from(range(n))
    for u, v in edges:
        if not (0 <= u < n and 0 <= v < n):
            raise ValueError(f"Edge ({u}, {v}) out of range for {n} vertices.")
        G.add_edge(int(u), int(v))
    for i, name in enumerate(names):
        G.nodes[i]["name"] = name
    return G


def distances_from(G: nx.DiGraph, source: int) -> np.ndarray:
    """Edge count of a shortest undirected path from `source` to every vertex (-1 if unreachable)."""
    lengths = nx.single_source_shortest_path_length(G.to_undirected(as_view=True), source)
    d = np.full(G.number_of_nodes(), -1, dtype=np.int32)
    for v, k in lengths.items():
        d[v] = k
    return d


def distance(G: nx.DiGraph, a: int, b: int) -> int:
    return int(nx.shortest_path_length(G.to_undirected(as_view=True), a, b))


def distance_matrix(n: int, edges: Sequence[Tuple[int, int]]) -> np.ndarray:
    """All pairs shortest path lengths on the undirected covering graph."""
    if n == 0:
        return np.zeros((0, 0))
    if edges:
        rows = [u for u, _v in edges]
        cols = [v for _u, v in edges]
        A = csr_matrix((np.ones(len(edges)), (rows, cols)), shape=(n, n))
    else:
        A = csr_matrix((n, n))
    return shortest_path(A, method="D", directed=False, unweighted=True)


def longest_path_depth(dag: nx.DiGraph) -> Dict[int, int]:
    """Depth label = length of a longest directed path ending at node."""
    order = list(nx.topological_sort(dag))
    depth: Dict[int, int] = {v: 0 for v in dag.nodes()}
    for v in order:
        preds = list(dag.predecessors(v))
        depth[v] = 0 if not preds else 1 + max(depth[p] for p in preds)
    return depth


def lattice_width(G: nx.DiGraph) -> int:
    """Size of the largest rank level (a cheap width estimate for reports)."""
    rank = longest_path_depth(G)
    if not rank:
        return 0
    counts: Dict[int, int] = {}
    for r in rank.values():
        counts[r] = counts.get(r, 0) + 1
    return max(counts.values())


# ----------------------------
# 3D layout
# ----------------------------

@dataclass(frozen=True)
class CornerInfo:
    """Related generators share a corner of the layout."""

    corner_count: int
    corner_generators: List[List[int]]
    generator_corner: List[int]


def corner_info(relations: RelationMap, generator_element_count: int) -> CornerInfo:
    corner_generators: List[List[int]] = []
    generator_corner: List[int] = []
    for e1 in range(generator_element_count):
        corner_no = -1
        for e2 in range(e1):
            if relations.related(e1, e2):
                corner_no = generator_corner[e2]
                break
        if corner_no == -1:
            corner_no = len(corner_generators)
            corner_generators.append([])
        corner_generators[corner_no].append(e1)
        generator_corner.append(corner_no)
    return CornerInfo(corner_count=len(corner_generators), corner_generators=corner_generators, generator_corner=generator_corner)


@dataclass(frozen=True)
class LatticeGraphLayout:
    positions: List[List[float]]        # [x, y, z] per element; x left/right, y down/up, z behind/ahead
    graph_height: int                   # bottom to top distance in edges
    graph_width: int                    # approximate width in edges


def _center(a: Sequence):
    return a[len(a) // 2]


def lattice_graph_layout(
    table: ElementTable,
    G: nx.DiGraph,
    relations: RelationMap,
    generator_element_count: int,
) -> LatticeGraphLayout:
    """Place the elements within the unit sphere.

    Height follows the distances from bottom and top. The generator corners sit
    on a circle and every element is pulled towards the corners it is close to.
    """
    bottom = table.bottom_element_no
    top = table.top_element_no
    if bottom is None or top is None:
        raise ValueError("Lattice layout requires a bottom and a top element.")
    n = table.n
    info = corner_info(relations, generator_element_count)
    bottom_d = distances_from(G, bottom)
    top_d = distances_from(G, top)
    graph_height = int(bottom_d[top])
    graph_width = distance(G, _center(info.corner_generators[0]), _center(_center(info.corner_generators)))

    corner_pos = []
    for i in range(info.corner_count):
        alpha = (i + 0.19) * 2 * math.pi / info.corner_count
        corner_pos.append((math.cos(alpha), -math.sin(alpha)))
    generator_d = [distances_from(G, g) for g in range(generator_element_count)]

    positions: List[List[float]] = []
    for element_no in range(n):
        db = float(bottom_d[element_no])
        dt = float(top_d[element_no])
        y = (db - dt) / (db + dt)
        corner_d = [min(float(generator_d[g][element_no]) for g in gens) for gens in info.corner_generators]
        dist_sum = sum(corner_d)
        x = 0.0
        z = 0.0
        for c, dist in enumerate(corner_d):
            if dist_sum == 0:
                break
            w = 1.0 - dist / dist_sum
            x += w * corner_pos[c][0]
            z += w * corner_pos[c][1]
        positions.append([x, y, z])

    max_r = max(math.hypot(p[0], p[2]) for p in positions)
    if max_r >= 1e-6:
        r = graph_width / (graph_height * max_r)
        for p in positions:
            p[0] *= r
            p[2] *= r

    positions = [[round(v, 6) for v in p] for p in positions]
    return LatticeGraphLayout(positions=positions, graph_height=graph_height, graph_width=graph_width)
