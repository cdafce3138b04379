"""
Main Application Module.

Composes the pet health map window: database, asset storage, services,
persistence gateway, background worker, marker store and widgets.
"""

import argparse
import logging
import os
import sys
import uuid
from typing import List, Optional

from PySide6.QtCore import QSettings, Qt
from PySide6.QtWidgets import QApplication, QMainWindow, QVBoxLayout, QWidget

from healthmap.app.constants import (
    DEFAULT_DB_NAME,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    SETTINGS_ACTIVE_DB_KEY,
    SETTINGS_LAST_PET_ID_KEY,
    WINDOW_SETTINGS_APP,
    WINDOW_SETTINGS_KEY,
    WINDOW_TITLE,
)
from healthmap.core.logging_config import setup_logging, shutdown_logging
from healthmap.core.paths import get_user_data_path
from healthmap.core.photo import Photo
from healthmap.gui.widgets.health_map import HealthMapWidget
from healthmap.gui.widgets.photo_strip import PhotoStripWidget
from healthmap.services.asset_store import AssetStore
from healthmap.services.background_provider import BackgroundProvider
from healthmap.services.db_service import DatabaseService
from healthmap.services.export_pipeline import HealthMapExporter
from healthmap.services.marker_store import MarkerStore
from healthmap.services.persistence_gateway import PersistenceGateway
from healthmap.services.photo_service import PhotoService
from healthmap.services.worker import TaskExecutor, ThreadedExecutor

logger = logging.getLogger(__name__)

DEFAULT_PET_NAME = "My Dog"


class HealthMapWindow(QMainWindow):
    """
    Main window showing one pet's health map and photo strip.
    """

    def __init__(
        self,
        db_service: DatabaseService,
        asset_store: AssetStore,
        pet_id: str,
        executor: Optional[TaskExecutor] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        """
        Args:
            db_service: Connected database holding the pet.
            asset_store: Storage for photo files.
            pet_id: The pet to show.
            executor: Runs persistence and exports. Defaults to a
                ThreadedExecutor owned by the window.
            parent: Parent widget.
        """
        super().__init__(parent)
        self.db_service = db_service
        self.pet_id = pet_id

        self.executor = executor or ThreadedExecutor(self)
        self._owns_executor = executor is None

        self.photo_service = PhotoService(db_service, asset_store)
        self.gateway = PersistenceGateway(db_service, self.photo_service)
        self.store = MarkerStore(pet_id, self.gateway, self.executor, self)
        self.background = BackgroundProvider(self)
        self.exporter = HealthMapExporter(self.store, self.background, self.gateway)

        pet = db_service.get_pet(pet_id)
        pet_name = pet["name"] if pet else pet_id
        self.setWindowTitle(f"{WINDOW_TITLE} - {pet_name}")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        central = QWidget(self)
        layout = QVBoxLayout(central)
        self.health_map = HealthMapWidget(
            self.store, self.background, self.exporter, self.executor, central
        )
        self.photo_strip = PhotoStripWidget(
            self.photo_service, pet_id, self.background.handle, central
        )
        layout.addWidget(self.health_map, 1)
        layout.addWidget(self.photo_strip)
        self.setCentralWidget(central)

        self.health_map.photo_exported.connect(self._on_photo_exported)

        self.store.load()
        self._restore_window_state()
        logger.info(f"Health map window ready for pet {pet_id}")

    def _on_photo_exported(self, photo: Photo) -> None:
        self.photo_strip.add_photo(photo)

    def _restore_window_state(self) -> None:
        settings = QSettings(WINDOW_SETTINGS_KEY, WINDOW_SETTINGS_APP)
        geometry = settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)

    def closeEvent(self, event) -> None:
        """
        Saves the window geometry and stops the worker thread.
        Saves still in flight are finished before the thread stops.
        """
        if self.store.pending_count:
            logger.info(
                f"Closing with {self.store.pending_count} pending operation(s)"
            )
        settings = QSettings(WINDOW_SETTINGS_KEY, WINDOW_SETTINGS_APP)
        settings.setValue("geometry", self.saveGeometry())
        settings.setValue(SETTINGS_LAST_PET_ID_KEY, self.pet_id)

        if self._owns_executor:
            self.executor.shutdown()
        event.accept()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pet Health Map")
    parser.add_argument(
        "--database", "-d", help="Database file (default: last used or user data dir)"
    )
    parser.add_argument("--pet-id", help="Pet to open (default: last opened pet)")
    parser.add_argument(
        "--pet-name",
        default=DEFAULT_PET_NAME,
        help="Name used when the pet record has to be created",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def resolve_database_path(settings: QSettings, override: Optional[str]) -> str:
    if override:
        return os.path.abspath(override)
    stored = settings.value(SETTINGS_ACTIVE_DB_KEY)
    if stored:
        return str(stored)
    return get_user_data_path(DEFAULT_DB_NAME)


def resolve_pet_id(settings: QSettings, override: Optional[str]) -> str:
    if override:
        return override
    stored = settings.value(SETTINGS_LAST_PET_ID_KEY)
    if stored:
        return str(stored)
    return str(uuid.uuid4())


def ensure_pet(db_service: DatabaseService, pet_id: str, pet_name: str) -> None:
    """Creates the pet record if it does not exist yet."""
    if db_service.get_pet(pet_id) is None:
        logger.info(f"Creating pet record {pet_id} ({pet_name})")
        db_service.insert_pet(pet_id, pet_name)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point.
    Sets up logging, opens the database and launches the window.
    """
    args = parse_args(argv)
    setup_logging(debug_mode=args.debug, log_dir=get_user_data_path("logs"))

    try:
        logger.info("Starting Application...")
        QApplication.setHighDpiScaleFactorRoundingPolicy(
            Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
        )
        app = QApplication(sys.argv[:1])

        settings = QSettings(WINDOW_SETTINGS_KEY, WINDOW_SETTINGS_APP)
        db_path = resolve_database_path(settings, args.database)
        pet_id = resolve_pet_id(settings, args.pet_id)

        db_service = DatabaseService(db_path)
        db_service.connect()
        ensure_pet(db_service, pet_id, args.pet_name)
        settings.setValue(SETTINGS_ACTIVE_DB_KEY, db_path)

        asset_store = AssetStore(os.path.dirname(db_path) or os.getcwd())

        window = HealthMapWindow(db_service, asset_store, pet_id)
        window.show()

        logger.info("Entering Event Loop...")
        exit_code = app.exec()
        db_service.close()
        shutdown_logging()
        sys.exit(exit_code)
    except Exception:
        logger.exception("CRITICAL: Unhandled exception in main application loop")
        sys.exit(1)


if __name__ == "__main__":
    main()
