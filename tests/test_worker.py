import threading

import pytest

from fml_lab.errors import IterationLimitExceeded, UnknownLattice, WorkerBusy
from fml_lab.worker import LatticeWorker


def _drain(worker):
    msgs = []
    while not worker.messages.empty():
        msgs.append(worker.messages.get_nowait())
    return msgs


def test_message_sequence():
    def fake_generate(name, config, progress):
        progress("5 elements")
        progress("8 elements")
        return "structure-" + name

    worker = LatticeWorker(generate_fn=fake_generate)
    worker.request({"op": "start", "lattice_name": "2-1"})
    worker.join(5)
    msgs = _drain(worker)
    assert [m["op"] for m in msgs] == ["progress", "progress", "complete"]
    assert msgs[0]["text"] == "5 elements"
    assert msgs[-1]["structure"] == "structure-2-1"
    assert not worker.active


def test_second_request_is_rejected():
    release = threading.Event()

    def slow_generate(name, config, progress):
        release.wait(5)
        return name

    worker = LatticeWorker(generate_fn=slow_generate)
    worker.request({"op": "start", "lattice_name": "2-2"})
    assert worker.active
    with pytest.raises(WorkerBusy):
        worker.request({"op": "start", "lattice_name": "2-1"})
    release.set()
    worker.join(5)
    msgs = _drain(worker)
    assert [m["op"] for m in msgs] == ["complete"]
    assert msgs[0]["structure"] == "2-2"


def test_error_message():
    def failing_generate(name, config, progress):
        raise IterationLimitExceeded("too many")

    worker = LatticeWorker(generate_fn=failing_generate)
    worker.request({"op": "start", "lattice_name": "2-1"})
    worker.join(5)
    msgs = _drain(worker)
    assert len(msgs) == 1
    assert msgs[0]["op"] == "error"
    assert isinstance(msgs[0]["error"], IterationLimitExceeded)
    assert msgs[0]["text"] == "too many"
    assert not worker.active


def test_bad_requests():
    worker = LatticeWorker()
    with pytest.raises(UnknownLattice):
        worker.request({"op": "start", "lattice_name": "9-9"})
    with pytest.raises(ValueError):
        worker.request({"op": "stop"})
    assert not worker.active


def test_inline_generation():
    worker = LatticeWorker(inline_threshold=100)
    worker.request({"op": "start", "lattice_name": "2-1"})
    msgs = _drain(worker)
    assert msgs[-1]["op"] == "complete"
    assert msgs[-1]["structure"].elements == 8
    assert all(m["op"] == "progress" for m in msgs[:-1])
