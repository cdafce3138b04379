"""
Unit tests for the Marker data model.
"""

import pytest

from healthmap.core.marker import Marker, markers_from_storage, markers_to_storage


def test_create_generates_id_and_timestamp():
    a = Marker.create(0.25, 0.75, "Rash")
    b = Marker.create(0.25, 0.75, "Rash")

    assert a.id != b.id
    assert a.x == 0.25
    assert a.y == 0.75
    assert a.note == "Rash"
    assert a.created_at


def test_create_accepts_canvas_edges():
    marker = Marker.create(0.0, 1.0)
    assert (marker.x, marker.y) == (0.0, 1.0)
    assert marker.note == ""


@pytest.mark.parametrize("x, y", [(-0.01, 0.5), (0.5, 1.01)])
def test_create_rejects_out_of_range(x, y):
    with pytest.raises(ValueError):
        Marker.create(x, y)


def test_with_note_keeps_identity_and_position():
    marker = Marker.create(0.1, 0.2, "old")
    edited = marker.with_note("new")

    assert edited.note == "new"
    assert edited.id == marker.id
    assert (edited.x, edited.y) == (marker.x, marker.y)
    assert edited.created_at == marker.created_at
    assert marker.note == "old"


def test_to_dict_shape():
    marker = Marker(x=0.5, y=0.5, note="Matted", id="m1", created_at="2026-03-04T10:00:00+00:00")
    assert marker.to_dict() == {
        "id": "m1",
        "x": 0.5,
        "y": 0.5,
        "note": "Matted",
        "created_at": "2026-03-04T10:00:00+00:00",
    }


def test_from_dict_accepts_camel_case_timestamp():
    marker = Marker.from_dict(
        {"id": "m2", "x": 0.3, "y": 0.4, "createdAt": "2026-01-02T00:00:00Z"}
    )
    assert marker.created_at == "2026-01-02T00:00:00Z"
    assert marker.note == ""


def test_from_dict_requires_coordinates():
    with pytest.raises(KeyError):
        Marker.from_dict({"id": "m3", "y": 0.4})


def test_created_date_label():
    marker = Marker(x=0, y=0, created_at="2026-03-04T10:00:00+00:00")
    assert marker.created_date_label() == "Mar 4, 2026"


def test_created_date_label_unparseable_returns_raw():
    marker = Marker(x=0, y=0, created_at="yesterday")
    assert marker.created_date_label() == "yesterday"


def test_empty_list_stored_as_none():
    assert markers_to_storage([]) is None
    assert markers_from_storage(None) == []


def test_storage_preserves_order():
    markers = [Marker.create(0.1, 0.1, "a"), Marker.create(0.2, 0.2, "b")]
    restored = markers_from_storage(markers_to_storage(markers))
    assert [m.id for m in restored] == [m.id for m in markers]
