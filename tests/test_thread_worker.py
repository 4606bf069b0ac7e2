import threading

import pytest

from kaklsp.thread_worker import Worker


def doubler(incoming, emit):
    for item in incoming:
        emit(item * 2)


def test_items_are_processed_in_order():
    with Worker("doubler", 4, doubler) as worker:
        for n in range(10):
            worker.send(n)
        results = [worker.receive(timeout=5) for _ in range(10)]
    assert results == [n * 2 for n in range(10)]


def test_close_ends_incoming_iteration():
    seen = []

    def collect(incoming, emit):
        seen.extend(incoming)
        emit("done")

    worker = Worker("collector", 2, collect)
    worker.send("a")
    worker.send("b")
    worker.close()
    assert seen == ["a", "b"]
    assert worker.receive(timeout=5) == "done"
    with pytest.raises(EOFError):
        worker.receive(timeout=5)


def test_send_after_close_raises():
    worker = Worker("closed", 1, doubler)
    worker.close()
    with pytest.raises(RuntimeError):
        worker.send(1)


def test_send_to_stopped_worker_raises():
    worker = Worker("quitter", 1, lambda incoming, emit: None)
    worker._thread.join(timeout=5)
    with pytest.raises(RuntimeError):
        worker.send(1)
    worker.close()


def test_receive_times_out():
    release = threading.Event()

    def waiter(incoming, emit):
        release.wait(5)
        for _ in incoming:
            pass

    worker = Worker("waiter", 1, waiter)
    with pytest.raises(TimeoutError):
        worker.receive(timeout=0.1)
    release.set()
    worker.close()


def test_worker_error_reraised_on_close():
    def failing(incoming, emit):
        for item in incoming:
            raise ValueError(f"bad item {item}")

    worker = Worker("failing", 1, failing)
    worker.send(7)
    with pytest.raises(ValueError, match="bad item 7"):
        worker.close()


def test_context_manager_does_not_mask_body_error():
    def failing(incoming, emit):
        raise KeyError("worker")

    worker = Worker("failing", 1, failing)
    with pytest.raises(IndexError, match="body") as info:
        with worker:
            raise IndexError("body")
    assert info.value.args == ("body",)
    assert not worker._thread.is_alive()
    with pytest.raises(RuntimeError):
        worker.send(1)


def test_close_is_idempotent():
    worker = Worker("twice", 1, doubler)
    worker.send(3)
    assert worker.receive(timeout=5) == 6
    worker.close()
    worker.close()
    with pytest.raises(EOFError):
        worker.receive(timeout=1)


def test_close_with_full_queue_drains():
    gate = threading.Event()
    processed = []

    def slow(incoming, emit):
        gate.wait(5)
        processed.extend(incoming)

    worker = Worker("slow", 1, slow)
    worker.send(1)
    closer = threading.Thread(target=worker.close)
    closer.start()
    gate.set()
    closer.join(timeout=5)
    assert not closer.is_alive()
    assert processed == [1]