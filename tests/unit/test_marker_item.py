import pytest

from healthmap.core.marker import Marker
from healthmap.gui.widgets.health_map.marker_item import HealthMarkerItem, truncate_note


@pytest.mark.parametrize(
    "note, expected",
    [
        ("", ""),
        ("Rash", "Rash"),
        ("Twelve chars", "Twelve chars"),
        ("Thirteen char", "Thirteen cha..."),
    ],
)
def test_truncate_note(note, expected):
    assert truncate_note(note) == expected


def test_item_label_and_highlight(qapp):
    item = HealthMarkerItem(Marker(x=0.5, y=0.5, note="Very long note here", id="m1"))

    assert item.marker_id == "m1"
    assert item.label_text() == "Very long no..."
    assert item.toolTip() == "Very long note here"
    assert item.is_highlighted() is False

    item.set_highlighted(True)
    assert item.is_highlighted() is True


def test_set_marker_updates_tooltip(qapp):
    item = HealthMarkerItem(Marker(x=0.5, y=0.5, note="a", id="m1"))
    item.set_marker(Marker(x=0.5, y=0.5, note="b", id="m1"))

    assert item.toolTip() == "b"
