import logging
from pathlib import Path
from typing import Callable, List, Optional

from PySide6.QtCore import QPoint, QSize, Qt
from PySide6.QtGui import QIcon
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMenu,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from healthmap.app.constants import IMAGE_FILE_FILTER
from healthmap.core.background import UsePhotoAsBackground
from healthmap.core.photo import Photo
from healthmap.services.photo_service import PhotoService

logger = logging.getLogger(__name__)

USE_AS_BACKGROUND_TEXT = "Use as Health Map Background"


class PhotoStripWidget(QWidget):
    """
    Horizontal strip of a pet's photos, newest first.

    Choosing "Use as Health Map Background" hands a UsePhotoAsBackground
    command to the callback supplied at construction.
    """

    def __init__(
        self,
        photo_service: PhotoService,
        pet_id: str,
        on_use_as_background: Callable[[UsePhotoAsBackground], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.photo_service = photo_service
        self.pet_id = pet_id
        self._on_use_as_background = on_use_as_background
        self.photos: List[Photo] = []

        self.init_ui()
        self.refresh()

    def init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QHBoxLayout()
        self.lbl_title = QLabel("Photos")
        self.lbl_title.setStyleSheet("font-weight: bold;")

        self.btn_add = QPushButton("Add Photo...")
        self.btn_add.setToolTip("Upload a photo of this pet")
        self.btn_add.clicked.connect(self.on_add_clicked)

        toolbar.addWidget(self.lbl_title)
        toolbar.addStretch()
        toolbar.addWidget(self.btn_add)
        layout.addLayout(toolbar)

        self.list_widget = QListWidget()
        self.list_widget.setViewMode(QListWidget.ViewMode.IconMode)
        self.list_widget.setFlow(QListWidget.Flow.LeftToRight)
        self.list_widget.setWrapping(False)
        self.list_widget.setIconSize(QSize(96, 96))
        self.list_widget.setSpacing(6)
        self.list_widget.setFixedHeight(130)
        self.list_widget.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.list_widget.itemDoubleClicked.connect(self._on_item_double_clicked)

        self.list_widget.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.list_widget.customContextMenuRequested.connect(self.show_context_menu)

        layout.addWidget(self.list_widget)

    def refresh(self) -> None:
        """Reloads the pet's photos from the service."""
        self.photos = self.photo_service.list_photos(self.pet_id)
        self.list_widget.clear()
        for photo in self.photos:
            self.list_widget.addItem(self._make_item(photo))
        logger.debug(f"PhotoStrip: {len(self.photos)} photo(s) for pet {self.pet_id}")

    def add_photo(self, photo: Photo) -> None:
        """Prepends a newly stored photo, e.g. an exported health map."""
        if any(p.id == photo.id for p in self.photos):
            return
        self.photos.insert(0, photo)
        self.list_widget.insertItem(0, self._make_item(photo))

    def _make_item(self, photo: Photo) -> QListWidgetItem:
        item = QListWidgetItem()
        item.setData(Qt.ItemDataRole.UserRole, photo.id)
        item.setToolTip(photo.created_at)

        thumb = self.photo_service.thumbnail_path(photo.id)
        if thumb and Path(thumb).exists():
            item.setIcon(QIcon(thumb))
        else:
            logger.warning(f"PhotoStrip: thumbnail missing for photo {photo.id}")
            item.setText("(Missing)")
        return item

    def photo_for(self, photo_id: str) -> Optional[Photo]:
        return next((p for p in self.photos if p.id == photo_id), None)

    def use_as_background(self, photo_id: str) -> bool:
        """
        Sends the chosen photo to the health map.

        Returns:
            bool: False if the photo is not in the strip.
        """
        photo = self.photo_for(photo_id)
        if photo is None:
            return False
        logger.info(f"PhotoStrip: using photo {photo_id} as health map background")
        self._on_use_as_background(UsePhotoAsBackground(photo.id, photo.url))
        return True

    def _on_item_double_clicked(self, item: QListWidgetItem) -> None:
        self.use_as_background(item.data(Qt.ItemDataRole.UserRole))

    def show_context_menu(self, pos: QPoint) -> None:
        item = self.list_widget.itemAt(pos)
        if not item:
            return

        menu = QMenu(self)
        use_action = menu.addAction(USE_AS_BACKGROUND_TEXT)
        menu.addSeparator()
        remove_action = menu.addAction("Remove")

        action = menu.exec(self.list_widget.mapToGlobal(pos))

        photo_id = item.data(Qt.ItemDataRole.UserRole)
        if action == use_action:
            self.use_as_background(photo_id)
        elif action == remove_action:
            self.remove_photo(photo_id, confirm=True)

    def on_add_clicked(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Select Photo", "", IMAGE_FILE_FILTER
        )
        if file_path:
            self.upload_file(file_path)

    def upload_file(self, file_path: str) -> bool:
        """
        Uploads an image file for the pet.

        Returns:
            bool: True if the photo was stored.
        """
        data = Path(file_path).read_bytes()
        response = self.photo_service.upload_photo(self.pet_id, data)
        if not response.get("success"):
            error = response.get("error", "Upload failed.")
            logger.warning(f"PhotoStrip: upload failed: {error}")
            QMessageBox.warning(self, "Upload Failed", error)
            return False
        self.add_photo(Photo.from_dict(response["photo"]))
        return True

    def remove_photo(self, photo_id: str, confirm: bool = False) -> bool:
        if confirm:
            reply = QMessageBox.question(
                self,
                "Remove Photo",
                "Are you sure you want to remove this photo?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return False

        response = self.photo_service.delete_photo(photo_id)
        if not response.get("success"):
            logger.warning(f"PhotoStrip: could not remove {photo_id}: {response}")
            return False
        self.refresh()
        return True
