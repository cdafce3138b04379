"""
Integration tests for the health map window.

Wires the real database, asset storage, photo service, gateway and widgets
together, running persistence inline so each step is settled on return.
"""

import pytest

from healthmap.app.main import HealthMapWindow, ensure_pet, resolve_pet_id
from healthmap.services.asset_store import AssetStore
from healthmap.services.db_service import DatabaseService
from healthmap.services.worker import InlineExecutor


@pytest.fixture
def database(tmp_path):
    service = DatabaseService(str(tmp_path / "pets.healthmap"))
    service.connect()
    ensure_pet(service, "pet-1", "Biscuit")
    yield service
    service.close()


@pytest.fixture
def window(qtbot, database, tmp_path):
    win = HealthMapWindow(
        database, AssetStore(str(tmp_path)), "pet-1", executor=InlineExecutor()
    )
    qtbot.addWidget(win)
    win.show()
    qtbot.waitExposed(win)
    return win


def test_window_title_uses_pet_name(window):
    assert window.windowTitle().endswith("Biscuit")


def test_place_edit_delete_persists(window, database):
    health_map = window.health_map

    health_map.view.canvas_pressed.emit(0.25, 0.5)
    health_map.popup.note_edit.setText("Scratch")
    health_map.popup.save_button.click()

    (stored,) = database.get_markers("pet-1")
    assert stored["note"] == "Scratch"
    assert stored["x"] == pytest.approx(0.25)

    health_map.view.marker_pressed.emit(stored["id"])
    health_map.popup.note_edit.setText("Scratch (healing)")
    health_map.popup.save_button.click()
    assert database.get_markers("pet-1")[0]["note"] == "Scratch (healing)"

    health_map.view.marker_pressed.emit(stored["id"])
    health_map.popup.delete_button.click()
    assert database.get_markers("pet-1") == []
    assert database.get_pet("pet-1")["health_map"] is None


def test_markers_reload_in_new_window(qtbot, window, database, tmp_path):
    window.store.place(0.1, 0.2, "Lump")
    window.store.place(0.8, 0.6, "Tick")

    second = HealthMapWindow(
        database, AssetStore(str(tmp_path)), "pet-1", executor=InlineExecutor()
    )
    qtbot.addWidget(second)

    assert [m.note for m in second.store.list()] == ["Lump", "Tick"]
    assert second.health_map.count_badge.text() == "2 markers"


def test_export_adds_photo_to_strip(window, database):
    window.store.place(0.5, 0.5, "Rash")

    assert window.health_map.export() is True

    photos = database.get_photos_for_pet("pet-1")
    assert len(photos) == 1
    assert window.photo_strip.photos[0].id == photos[0]["id"]
    # Exporting never changes the markers
    assert len(window.store) == 1


def test_photo_strip_sets_background(window, png_file):
    assert window.photo_strip.upload_file(str(png_file)) is True
    photo = window.photo_strip.photos[0]

    window.photo_strip.use_as_background(photo.id)

    assert window.background.current().url == photo.url
    assert window.health_map.view.photo_item.isVisible()
    assert window.health_map.action_reset_background.isEnabled()


def test_resolve_pet_id_prefers_override():
    class Settings:
        def value(self, key, default=None):
            return "stored-pet"

    assert resolve_pet_id(Settings(), "given") == "given"
    assert resolve_pet_id(Settings(), None) == "stored-pet"
