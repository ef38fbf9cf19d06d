"""FML Lab: free modular lattice generator.

This package implements:
- Element table, relation matrix and combination cache of a lattice under construction
- Relation derivation for new meet/join elements and alias groups
- Modular-law deduction of forced alias combinations
- The generation driver and a post-hoc consistency verifier
- A catalog of named lattices, covering graphs, 3D layouts and a background worker

Designed to support reproducible lattice generation runs and experiments.
"""

__all__ = [
    "errors",
    "base",
    "expressions",
    "relations",
    "modular",
    "controller",
    "verify",
    "catalog",
    "generate",
    "graphs",
    "worker",
    "dump",
]
