import logging
import os
import pathlib
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest

# Ensure project root is in sys.path
repo_root = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402

from healthmap.commands.base_command import CommandResult  # noqa: E402
from healthmap.services.worker import Task, run_task  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """
    Ensure QApplication is instantiated only once.
    """
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def db_service():
    """
    Provides a fresh in-memory database service with one pet ("pet-1").
    """
    from healthmap.services.db_service import DatabaseService

    service = DatabaseService(":memory:")
    service.connect()
    service.insert_pet("pet-1", "Biscuit")
    yield service
    service.close()


@pytest.fixture
def restore_root_logger():
    """
    Puts the root logger back the way pytest configured it.
    """
    from healthmap.core.logging_config import QUIET_LOGGERS

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)


class FakeMarkerService:
    """
    In-memory MarkerPersistenceService that records calls and can be told
    to fail or raise.
    """

    def __init__(self) -> None:
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.fail = False
        self.raise_error: Optional[Exception] = None

    def _respond(self) -> Optional[Dict[str, Any]]:
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail:
            return {"success": False, "error": "Service unavailable"}
        return None

    def save_marker(self, pet_id: str, marker: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("save", pet_id, marker["id"]))
        failure = self._respond()
        if failure:
            return failure
        rows = self.rows.setdefault(pet_id, [])
        for i, row in enumerate(rows):
            if row["id"] == marker["id"]:
                rows[i] = dict(marker)
                break
        else:
            rows.append(dict(marker))
        return {"success": True}

    def delete_marker(self, pet_id: str, marker_id: str) -> Dict[str, Any]:
        self.calls.append(("delete", pet_id, marker_id))
        failure = self._respond()
        if failure:
            return failure
        self.rows[pet_id] = [r for r in self.rows.get(pet_id, []) if r["id"] != marker_id]
        return {"success": True}

    def clear_markers(self, pet_id: str) -> Dict[str, Any]:
        self.calls.append(("clear", pet_id))
        failure = self._respond()
        if failure:
            return failure
        self.rows[pet_id] = []
        return {"success": True}

    def get_markers(self, pet_id: str) -> List[Dict[str, Any]]:
        self.calls.append(("get", pet_id))
        if self.raise_error is not None:
            raise self.raise_error
        return [dict(r) for r in self.rows.get(pet_id, [])]


class FakePhotoService:
    """In-memory PhotoStorageService recording every upload."""

    def __init__(self) -> None:
        self.uploads: List[tuple] = []
        self.fail = False

    def upload_photo(self, pet_id: str, data: bytes) -> Dict[str, Any]:
        self.uploads.append((pet_id, data))
        if self.fail:
            return {"success": False, "error": "Storage full"}
        index = len(self.uploads)
        return {
            "success": True,
            "photo": {
                "id": f"photo-{index}",
                "url": f"https://photos.example/{pet_id}/{index}.png",
                "created_at": "2026-03-04T10:00:00+00:00",
            },
        }


class ManualExecutor:
    """
    Holds submitted tasks until the test runs them, so the optimistic
    window between local apply and gateway response can be observed.
    """

    def __init__(self) -> None:
        self.tasks: List[Task] = []

    def submit(
        self,
        fn: Callable[[], CommandResult],
        on_done: Callable[[CommandResult], None],
        description: str = "",
    ) -> None:
        self.tasks.append(Task(fn, on_done, description))

    @property
    def pending(self) -> int:
        return len(self.tasks)

    def run_next(self) -> CommandResult:
        task = self.tasks.pop(0)
        result = run_task(task)
        task.on_done(result)
        return result

    def run_all(self) -> None:
        while self.tasks:
            self.run_next()

    def finish_next(self, result: CommandResult) -> None:
        """Completes the oldest task with a given result, skipping its work."""
        task = self.tasks.pop(0)
        task.on_done(result)


@pytest.fixture
def marker_service():
    return FakeMarkerService()


@pytest.fixture
def photo_service():
    return FakePhotoService()


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def gateway(marker_service, photo_service):
    from healthmap.services.persistence_gateway import PersistenceGateway

    return PersistenceGateway(marker_service, photo_service)


@pytest.fixture
def store(gateway):
    """Marker store for "pet-1" that persists inline."""
    from healthmap.services.marker_store import MarkerStore

    return MarkerStore("pet-1", gateway)


@pytest.fixture
def deferred_store(gateway, manual_executor):
    """Marker store whose persistence waits for manual_executor."""
    from healthmap.services.marker_store import MarkerStore

    return MarkerStore("pet-1", gateway, manual_executor)


@pytest.fixture
def png_file(tmp_path, qapp):
    """A 40x20 PNG on disk (wider than the canvas aspect ratio)."""
    from PySide6.QtGui import QColor, QImage

    image = QImage(40, 20, QImage.Format.Format_ARGB32)
    image.fill(QColor("#3366cc"))
    path = tmp_path / "photo.png"
    assert image.save(str(path), "PNG")
    return path


class MockQSettings:
    """
    In-memory mock for QSettings to prevent tests from overwriting real config.
    """

    _storage = {}

    def __init__(self, *args, **kwargs):
        self.organization = args[0] if len(args) > 0 else "MockOrg"
        self.application = args[1] if len(args) > 1 else "MockApp"

    def setValue(self, key, value):
        full_key = f"{self.organization}/{self.application}/{key}"
        self._storage[full_key] = value

    def value(self, key, default=None, type=None):
        full_key = f"{self.organization}/{self.application}/{key}"
        val = self._storage.get(full_key, default)
        if type is not None and val is not None:
            try:
                if type == bool and isinstance(val, str):
                    return val.lower() == "true"
                return type(val)
            except (ValueError, TypeError):
                return default
        return val

    def remove(self, key):
        full_key = f"{self.organization}/{self.application}/{key}"
        if full_key in self._storage:
            del self._storage[full_key]

    def contains(self, key):
        full_key = f"{self.organization}/{self.application}/{key}"
        return full_key in self._storage

    def sync(self):
        pass


@pytest.fixture(autouse=True, scope="session")
def mock_qsettings_global():
    """
    Globally patches QSettings for the entire test session.
    Protects the user's real settings from being overwritten by tests.
    """
    from unittest.mock import patch

    patchers = [
        patch("PySide6.QtCore.QSettings", MockQSettings),
        patch("healthmap.app.main.QSettings", MockQSettings),
    ]
    mocks = [p.start() for p in patchers]

    yield mocks[0]

    for p in patchers:
        p.stop()
