from __future__ import annotations

"""Generate a range of catalog lattices and tabulate them.

Outputs (in --out_dir):
- catalog_sweep.csv   one row per lattice: generators, target, produced count,
                      covering edges, height, width, seconds, status
- fig_catalog_sizes.png  element and edge counts per lattice
"""

import argparse
import time
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from ..catalog import LATTICE_DEFS, LatticeDef
from ..controller import GenerationConfig
from ..errors import LatticeError
from ..generate import generate_lattice
from ..graphs import hasse_diagram, lattice_width, longest_path_depth


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate many catalog lattices and write a summary table.")
    p.add_argument("--max_elements", type=int, default=150, help="Skip catalog entries larger than this.")
    p.add_argument("--include_hidden", action="store_true", help="Also run entries marked as not interesting.")
    p.add_argument("--no_verify", action="store_true", help="Skip the final consistency check.")
    p.add_argument("--out_dir", type=str, default="results", help="Where to write the CSV and figure.")
    return p


def sweep_row(d: LatticeDef, cfg: GenerationConfig) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "lattice_name": d.lattice_name,
        "generators": len(d.generator_element_names),
        "target": d.elements,
        "elements": 0,
        "edges": 0,
        "height": 0,
        "width": 0,
        "seconds": float("nan"),
        "status": "ok",
    }
    t0 = time.perf_counter()
    try:
        ls = generate_lattice(d, cfg, with_layout=False)
    except LatticeError as e:
        row["seconds"] = time.perf_counter() - t0
        row["status"] = f"{type(e).__name__}: {e}"
        return row
    row["seconds"] = time.perf_counter() - t0
    G = hasse_diagram(ls.elements, ls.edges)
    rank = longest_path_depth(G)
    row["elements"] = ls.elements
    row["edges"] = len(ls.edges)
    row["height"] = int(rank[ls.top_element_no])
    row["width"] = lattice_width(G)
    return row


def main() -> None:
    args = build_argparser().parse_args()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    cfg = GenerationConfig(verify_result=not args.no_verify)

    defs = [
        d for d in LATTICE_DEFS
        if d.elements <= args.max_elements and (args.include_hidden or not d.hide)
    ]
    if not defs:
        raise SystemExit("No catalog entries selected.")

    rows: List[Dict[str, Any]] = []
    for d in defs:
        row = sweep_row(d, cfg)
        print(f"{d.lattice_name:>6}: {row['elements']:>5} / {d.elements:<5} {row['seconds']:.2f}s  {row['status']}")
        rows.append(row)

    df = pd.DataFrame(rows)
    csv_path = out_dir / "catalog_sweep.csv"
    df.to_csv(csv_path, index=False)

    fig = plt.figure(figsize=(8, 6))
    x = np.arange(len(df))
    plt.bar(x - 0.2, df["elements"].values, width=0.4, label="elements")
    plt.bar(x + 0.2, df["edges"].values, width=0.4, label="covering edges")
    plt.xticks(x, df["lattice_name"].values)
    plt.xlabel("lattice")
    plt.ylabel("count")
    plt.legend()
    plt.title("Free modular lattices: size by catalog entry")
    fig.tight_layout()
    fig_path = out_dir / "fig_catalog_sizes.png"
    fig.savefig(fig_path, dpi=200)
    plt.close(fig)

    print(f"Wrote:\n  {csv_path}\n  {fig_path}")


if __name__ == "__main__":
    main()
