"""
Unit tests for the MarkerStore optimistic mutation and rollback.
"""

from healthmap.commands.base_command import CommandResult, OperationState
from healthmap.core.marker import Marker


def test_place_is_visible_before_persistence(deferred_store, manual_executor, marker_service):
    marker = deferred_store.place(0.5, 0.5, "Rash")

    assert deferred_store.list() == (marker,)
    assert deferred_store.pending_count == 1
    assert marker_service.calls == []

    manual_executor.run_all()

    assert deferred_store.pending_count == 0
    assert marker_service.calls == [("save", "pet-1", marker.id)]
    assert marker_service.rows["pet-1"][0]["note"] == "Rash"


def test_failed_place_rolls_back(qtbot, deferred_store, manual_executor, marker_service):
    marker_service.fail = True
    deferred_store.place(0.2, 0.3)

    with qtbot.waitSignal(deferred_store.operation_failed) as blocker:
        manual_executor.run_all()

    assert deferred_store.list() == ()
    assert blocker.args == ["Service unavailable"]


def test_failed_update_restores_prior_note(deferred_store, manual_executor):
    original = Marker(x=0.4, y=0.4, note="old", id="m1")
    deferred_store.set_markers([original])

    deferred_store.update("m1", "new")
    assert deferred_store.get("m1").note == "new"

    manual_executor.finish_next(CommandResult(success=False, message="boom"))

    assert deferred_store.get("m1") == original


def test_failed_remove_reinserts(deferred_store, manual_executor):
    markers = [Marker(x=0.1, y=0.1, id=i) for i in ("a", "b", "c")]
    deferred_store.set_markers(markers)

    deferred_store.remove("b")
    assert [m.id for m in deferred_store.list()] == ["a", "c"]

    manual_executor.finish_next(CommandResult(success=False))

    assert [m.id for m in deferred_store.list()] == ["a", "b", "c"]
    assert deferred_store.get("b") == markers[1]


def test_rollback_touches_only_its_own_marker(deferred_store, manual_executor):
    first = deferred_store.place(0.1, 0.1, "first")
    second = deferred_store.place(0.9, 0.9, "second")

    # Second save succeeds, first fails: completions arrive out of order
    manual_executor.tasks.reverse()
    manual_executor.finish_next(CommandResult(success=True))
    manual_executor.finish_next(CommandResult(success=False))

    assert deferred_store.list() == (second,)
    assert first not in deferred_store.list()


def test_unknown_id_update_and_remove_are_silent(qtbot, deferred_store, manual_executor):
    deferred_store.set_markers([Marker(x=0.5, y=0.5, id="m1")])

    with qtbot.assertNotEmitted(deferred_store.markers_changed):
        deferred_store.update("nope", "x")
        deferred_store.remove("nope")

    assert manual_executor.pending == 0
    assert deferred_store.pending_count == 0


def test_pending_operations_expose_state(deferred_store, manual_executor):
    deferred_store.place(0.5, 0.5)

    (command,) = deferred_store.pending_operations()
    assert command.state is OperationState.APPLIED

    manual_executor.run_all()
    assert command.state is OperationState.CONFIRMED
    assert deferred_store.pending_operations() == ()


def test_signals_on_place(qtbot, store):
    with qtbot.waitSignals(
        [store.markers_changed, store.pending_changed, store.operation_confirmed]
    ):
        store.place(0.5, 0.5)


def test_load_reads_persisted_markers(store, marker_service):
    marker_service.rows["pet-1"] = [
        {"id": "m1", "x": 0.1, "y": 0.2, "note": "a", "created_at": "2026-01-01T00:00:00Z"},
        {"id": "bad"},
    ]

    store.load()

    assert [m.id for m in store.list()] == ["m1"]


def test_clear_removes_everything_and_rolls_back_on_failure(store, marker_service):
    store.set_markers([Marker(x=0.1, y=0.1, id="a"), Marker(x=0.2, y=0.2, id="b")])

    marker_service.fail = True
    store.clear()
    assert [m.id for m in store.list()] == ["a", "b"]

    marker_service.fail = False
    store.clear()
    assert store.list() == ()
    assert marker_service.calls[-1] == ("clear", "pet-1")


def test_list_is_a_snapshot(store):
    snapshot = store.list()
    store.place(0.5, 0.5)

    assert snapshot == ()
    assert len(store) == 1
