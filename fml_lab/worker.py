"""Background lattice generation.

Message contract on `LatticeWorker.messages`:

    {"op": "progress", "text": "<n> elements"}       zero or more times
    {"op": "complete", "structure": LatticeStructure}
    {"op": "error", "error": exc, "text": str(exc)}   instead of "complete"

One generation per worker at a time; there is no cancellation.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

from .catalog import get_lattice_def_by_name
from .controller import GenerationConfig
from .errors import WorkerBusy
from .generate import LatticeStructure, generate_lattice

logger = logging.getLogger(__name__)

GenerateFn = Callable[..., LatticeStructure]


class LatticeWorker:
    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        generate_fn: GenerateFn = generate_lattice,
        inline_threshold: int = 0,
    ):
        # lattices below `inline_threshold` elements are generated on the calling thread
        self.config = config
        self.generate_fn = generate_fn
        self.inline_threshold = int(inline_threshold)
        self.messages: "queue.Queue[dict]" = queue.Queue()
        self._lock = threading.Lock()
        self._active = False
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def request(self, msg: dict) -> None:
        op = msg.get("op")
        if op != "start":
            raise ValueError(f"Unknown worker request: {op!r}")
        lattice_name = msg["lattice_name"]
        d = get_lattice_def_by_name(lattice_name)
        with self._lock:
            if self._active:
                raise WorkerBusy("A lattice generation is still active.")
            self._active = True
        if d.elements < self.inline_threshold:
            self._run(lattice_name)
            return
        self._thread = threading.Thread(target=self._run, args=(lattice_name,), daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _progress(self, text: str) -> None:
        self.messages.put({"op": "progress", "text": text})

    def _run(self, lattice_name: str) -> None:
        try:
            structure = self.generate_fn(lattice_name, self.config, self._progress)
        except Exception as e:
            logger.debug("Generation of %s failed: %s", lattice_name, e)
            self._finish({"op": "error", "error": e, "text": str(e)})
            return
        self._finish({"op": "complete", "structure": structure})

    def _finish(self, msg: dict) -> None:
        with self._lock:
            self._active = False
        self.messages.put(msg)
