from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .catalog import LatticeDef, get_lattice_def_by_name
from .controller import GenerationConfig, LatticeController
from .errors import ElementCountMismatch, IterationLimitExceeded
from .graphs import LatticeGraphLayout, hasse_diagram, lattice_graph_edges, lattice_graph_layout

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str], None]
StepFn = Callable[[str], None]


@dataclass
class LatticeStructure:
    """Complete lattice as handed to layout and reporting code."""

    elements: int
    bottom_element_no: Optional[int]
    top_element_no: Optional[int]
    element_names: List[str]
    edges: List[Tuple[int, int]]
    layout: Optional[LatticeGraphLayout] = None

    def to_dict(self) -> dict:
        d = {
            "elements": self.elements,
            "bottom_element_no": self.bottom_element_no,
            "top_element_no": self.top_element_no,
            "element_names": list(self.element_names),
            "edges": [list(e) for e in self.edges],
        }
        if self.layout is not None:
            d["layout"] = {
                "positions": self.layout.positions,
                "graph_height": self.layout.graph_height,
                "graph_width": self.layout.graph_width,
            }
        return d


def run_generation(
    controller: LatticeController,
    target_elements: int,
    progress: Optional[ProgressFn] = None,
    on_step: Optional[StepFn] = None,
) -> int:
    """Create elements until no new combination is found; returns the number of steps.

    `progress` receives "<n> elements" at most once per `progress_interval` seconds,
    `on_step` receives the info line of every step.
    """
    cfg = controller.config
    max_iterations = cfg.max_iterations_factor * target_elements
    t0 = time.monotonic()
    last_progress_step = -1
    iteration = 0
    while True:
        if iteration > max_iterations:
            raise IterationLimitExceeded(f"Aborting main loop after {max_iterations} iterations.")
        iteration += 1
        info = controller.create_new_element()
        if info is None:
            logger.debug("No more elements found after %d steps.", iteration - 1)
            return iteration - 1
        if on_step is not None:
            on_step(info)
        controller.check_step()
        if progress is not None and cfg.progress_interval > 0:
            step = int((time.monotonic() - t0) / cfg.progress_interval)
            if step > last_progress_step:
                progress(f"{controller.elements.n} elements")
                last_progress_step = step


def build_controller(d: LatticeDef, config: Optional[GenerationConfig] = None) -> LatticeController:
    return LatticeController(d.elements, d.generator_element_names, d.generator_element_relations, config)


def check_result(controller: LatticeController, d: LatticeDef) -> None:
    """Final element count and (unless disabled) the consistency verifier."""
    if controller.elements.n != d.elements:
        raise ElementCountMismatch(
            f"Lattice {d.lattice_name}: {controller.elements.n} elements generated, {d.elements} expected."
        )
    if controller.config.verify_result:
        controller.verify_lattice_consistency()


def lattice_structure(controller: LatticeController, with_layout: bool = True) -> LatticeStructure:
    table = controller.elements
    edges = lattice_graph_edges(controller.relations)
    names = table.all_names()
    layout = None
    if with_layout:
        G = hasse_diagram(table.n, edges, names)
        layout = lattice_graph_layout(table, G, controller.relations, controller.generator_element_count)
    return LatticeStructure(
        elements=table.n,
        bottom_element_no=table.bottom_element_no,
        top_element_no=table.top_element_no,
        element_names=names,
        edges=edges,
        layout=layout,
    )


def generate_lattice_controller(
    lattice: Union[str, LatticeDef],
    config: Optional[GenerationConfig] = None,
    progress: Optional[ProgressFn] = None,
    on_step: Optional[StepFn] = None,
) -> LatticeController:
    """Generate a catalog lattice and return the controller holding its full state."""
    d = get_lattice_def_by_name(lattice) if isinstance(lattice, str) else lattice
    controller = build_controller(d, config)
    run_generation(controller, d.elements, progress, on_step)
    check_result(controller, d)
    return controller


def generate_lattice(
    lattice: Union[str, LatticeDef],
    config: Optional[GenerationConfig] = None,
    progress: Optional[ProgressFn] = None,
    with_layout: bool = True,
) -> LatticeStructure:
    controller = generate_lattice_controller(lattice, config, progress)
    return lattice_structure(controller, with_layout)
