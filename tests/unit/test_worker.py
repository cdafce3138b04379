"""
Tests for the task executors.
"""

import threading
import time

import pytest

from healthmap.commands.base_command import CommandResult
from healthmap.services.marker_store import MarkerStore
from healthmap.services.worker import InlineExecutor, Task, ThreadedExecutor, run_task


def test_run_task_converts_exceptions():
    def boom():
        raise RuntimeError("disk on fire")

    result = run_task(Task(boom, lambda r: None, "boom"))

    assert result.success is False
    assert "disk on fire" in result.message


def test_inline_executor_runs_immediately():
    results = []

    InlineExecutor().submit(lambda: CommandResult(success=True), results.append)

    assert len(results) == 1
    assert results[0].success is True


@pytest.fixture
def threaded_executor(qapp):
    executor = ThreadedExecutor()
    yield executor
    executor.shutdown()


def test_threaded_executor_runs_off_thread(qtbot, threaded_executor):
    main_thread = threading.get_ident()
    seen = {}
    results = []

    def work():
        seen["worker"] = threading.get_ident()
        return CommandResult(success=True, data={"n": 1})

    def done(result):
        seen["callback"] = threading.get_ident()
        results.append(result)

    threaded_executor.submit(work, done, "work")
    qtbot.waitUntil(lambda: len(results) == 1, timeout=5000)

    assert seen["worker"] != main_thread
    assert seen["callback"] == main_thread
    assert results[0].data == {"n": 1}


def test_threaded_executor_preserves_order(qtbot, threaded_executor):
    order = []

    for i in range(5):
        threaded_executor.submit(
            lambda i=i: CommandResult(success=True, data={"i": i}),
            lambda r: order.append(r.data["i"]),
        )

    qtbot.waitUntil(lambda: len(order) == 5, timeout=5000)
    assert order == [0, 1, 2, 3, 4]


def test_failing_callback_does_not_stop_worker(qtbot, threaded_executor):
    results = []

    def bad_callback(result):
        raise ValueError("handler bug")

    threaded_executor.submit(lambda: CommandResult(success=True), bad_callback)
    threaded_executor.submit(lambda: CommandResult(success=True), results.append)

    qtbot.waitUntil(lambda: len(results) == 1, timeout=5000)


def test_shutdown_runs_queued_tasks_first(qapp):
    executor = ThreadedExecutor()
    ran = []
    finished = []

    def slow(i):
        time.sleep(0.1)
        ran.append(i)
        return CommandResult(success=True, data={"i": i})

    for i in range(3):
        executor.submit(lambda i=i: slow(i), finished.append, f"slow {i}")

    executor.shutdown()

    assert ran == [0, 1, 2]
    assert [r.data["i"] for r in finished] == [0, 1, 2]


def test_submit_after_shutdown_fails_fast(qapp):
    executor = ThreadedExecutor()
    executor.shutdown()
    results = []

    executor.submit(lambda: CommandResult(success=True), results.append)

    assert results[0].success is False


def test_shutdown_persists_pending_marker_saves(qapp, gateway, marker_service):
    original_save = marker_service.save_marker

    def slow_save(pet_id, marker):
        time.sleep(0.1)
        return original_save(pet_id, marker)

    marker_service.save_marker = slow_save
    executor = ThreadedExecutor()
    store = MarkerStore("pet-1", gateway, executor)

    for fx in (0.1, 0.5, 0.9):
        store.place(fx, 0.5)
    executor.shutdown()

    assert len(marker_service.rows["pet-1"]) == 3
    assert store.pending_count == 0
    assert len(store) == 3
