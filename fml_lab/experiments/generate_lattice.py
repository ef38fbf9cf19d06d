from __future__ import annotations

"""Generate one free modular lattice from the catalog.

Prints one line per created element or alias group, then the element names,
the covering edges and (optionally) the full state dump. Writes a JSON summary
and a drawing of the covering graph in the x/y plane of the 3D layout.
"""

import argparse
import json
import logging
import time

import matplotlib.pyplot as plt

from ..catalog import get_lattice_def_by_name
from ..controller import GenerationConfig
from ..dump import dump_all
from ..generate import build_controller, check_result, lattice_structure, run_generation
from ..graphs import distance_matrix, hasse_diagram, longest_path_depth, lattice_width


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a free modular lattice from the catalog.")
    p.add_argument("--lattice", type=str, default="1-1-1", help="Catalog name, e.g. 2-2 or 1-1-1.")
    p.add_argument("--check_consistency", action="store_true", help="Verify the lattice after every step.")
    p.add_argument("--check_relations", action="store_true", help="Check relation closure after every step.")
    p.add_argument("--no_verify", action="store_true", help="Skip the final consistency check.")
    p.add_argument("--inf_symbol", type=str, default="*")
    p.add_argument("--sup_symbol", type=str, default="+")
    p.add_argument("--dump", action="store_true", help="Print the full state dump at the end.")
    p.add_argument("--out_json", type=str, default="", help="Write a JSON summary here.")
    p.add_argument("--out_png", type=str, default="", help="Draw the covering graph here.")
    p.add_argument("--verbose", action="store_true", help="Debug logging of the engine.")
    return p


def plot_lattice(structure, out_png: str, title: str) -> None:
    pos = structure.layout.positions
    plt.figure(figsize=(8, 6))
    for u, v in structure.edges:
        plt.plot([pos[u][0], pos[v][0]], [pos[u][1], pos[v][1]], color="gray", linewidth=0.8)
    xs = [p[0] for p in pos]
    ys = [p[1] for p in pos]
    plt.scatter(xs, ys, s=18, zorder=3)
    if structure.elements <= 40:
        for i, name in enumerate(structure.element_names):
            plt.annotate(name, (xs[i], ys[i]), fontsize=6, xytext=(3, 3), textcoords="offset points")
    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(out_png, dpi=200)
    plt.close()


def main() -> None:
    args = build_argparser().parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    cfg = GenerationConfig(
        check_consistency=bool(args.check_consistency),
        check_relations=bool(args.check_relations),
        verify_result=not args.no_verify,
        inf_symbol=args.inf_symbol,
        sup_symbol=args.sup_symbol,
    )
    d = get_lattice_def_by_name(args.lattice)
    print(f"--- LATTICE {d.lattice_name} (generators={','.join(d.generator_element_names)}, target={d.elements}) ---")

    t0 = time.perf_counter()
    controller = build_controller(d, cfg)
    try:
        run_generation(controller, d.elements, on_step=print)
        check_result(controller, d)
    except Exception as e:
        print()
        print(f"Error: {e}")
        print()
        print(dump_all(controller.state, controller.symbols))
        raise
    dt = time.perf_counter() - t0
    print("No more elements found.")
    print(f"Time: {dt * 1000:.0f} ms")

    structure = lattice_structure(controller)
    if args.dump:
        print()
        print(dump_all(controller.state, controller.symbols))
    print("\nGraph edges:\n" + json.dumps([list(e) for e in structure.edges]))
    print("\nElement names:\n" + json.dumps(structure.element_names))

    G = hasse_diagram(structure.elements, structure.edges, structure.element_names)
    rank = longest_path_depth(G)
    dist = distance_matrix(structure.elements, structure.edges)
    summary = {
        "lattice_name": d.lattice_name,
        "generators": list(d.generator_element_names),
        "elements": structure.elements,
        "edges": len(structure.edges),
        "height": int(rank[structure.top_element_no]),
        "width": lattice_width(G),
        "diameter": int(dist.max()) if structure.elements else 0,
        "seconds": float(dt),
        "structure": structure.to_dict(),
    }
    if args.out_json:
        with open(args.out_json, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
        print(f">> Saved '{args.out_json}'")
    if args.out_png:
        plot_lattice(structure, args.out_png, f"Free modular lattice {d.lattice_name} ({structure.elements} elements)")
        print(f">> Saved '{args.out_png}'")


if __name__ == "__main__":
    main()
