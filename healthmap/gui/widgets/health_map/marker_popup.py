"""
Marker Popup Module.

Small inline note editor anchored next to a marker on the canvas.
"""

import logging
from typing import Optional

from PySide6.QtCore import QPoint, QPointF, Qt, Signal
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from healthmap.app.constants import (
    POPUP_EDGE_MARGIN,
    POPUP_OFFSET_ABOVE,
    POPUP_OFFSET_BELOW,
    POPUP_RIGHT_RESERVE,
    POPUP_WIDTH,
)

logger = logging.getLogger(__name__)


def popup_position(anchor: QPointF, container_width: Optional[float]) -> QPoint:
    """
    Places the popup above its anchor while keeping it inside the container.

    Args:
        anchor: Marker position in container coordinates.
        container_width: Width of the container, or None if unknown. When
            unknown the popup is placed above the anchor without adjustment.

    Returns:
        QPoint: Top-left corner for the popup.
    """
    left = anchor.x()
    top = anchor.y() - POPUP_OFFSET_ABOVE

    if container_width is not None:
        if left + POPUP_WIDTH > container_width:
            left = container_width - POPUP_RIGHT_RESERVE
        if left < POPUP_EDGE_MARGIN:
            left = POPUP_EDGE_MARGIN
        if top < POPUP_EDGE_MARGIN:
            top = anchor.y() + POPUP_OFFSET_BELOW

    return QPoint(round(left), round(top))


class MarkerPopup(QFrame):
    """
    Note editor for a new or an existing marker.

    Signals:
        save_requested: Save pressed or Enter in the note field. Args: (note: str)
        delete_requested: Delete pressed (existing markers only).
        close_requested: Escape pressed.
    """

    save_requested = Signal(str)
    delete_requested = Signal()
    close_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("MarkerPopup")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setFixedWidth(POPUP_WIDTH)
        self.setStyleSheet(
            "#MarkerPopup { background: white; border: 1px solid #d6d3d1;"
            " border-radius: 10px; }"
        )

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(6)

        self.title_label = QLabel("Add a note")
        self.title_label.setStyleSheet("color: #5f7a5f; font-size: 11px;")
        layout.addWidget(self.title_label)

        self.note_edit = QLineEdit()
        self.note_edit.setPlaceholderText('e.g. "Matted", "Rash"')
        self.note_edit.returnPressed.connect(self._on_save)
        layout.addWidget(self.note_edit)

        buttons = QHBoxLayout()
        self.save_button = QPushButton("Save")
        self.save_button.setDefault(True)
        self.save_button.clicked.connect(self._on_save)
        buttons.addWidget(self.save_button, 1)

        self.delete_button = QPushButton("Delete")
        self.delete_button.setToolTip("Delete marker")
        self.delete_button.clicked.connect(self.delete_requested.emit)
        buttons.addWidget(self.delete_button)
        layout.addLayout(buttons)

        self.hide()

    def open_for(self, note: str, is_new: bool, anchor: QPointF) -> None:
        """
        Shows the editor at the anchor.

        Args:
            note: Initial note text.
            is_new: True while placing a new marker (no Delete button).
            anchor: Marker position in parent coordinates.
        """
        self.title_label.setText("Add a note" if is_new else "Edit note")
        self.delete_button.setVisible(not is_new)
        self.note_edit.setText(note)
        self.adjustSize()

        parent = self.parentWidget()
        container_width = parent.width() if parent is not None else None
        self.move(popup_position(anchor, container_width))
        self.show()
        self.raise_()
        self.note_edit.setFocus()
        self.note_edit.selectAll()

    def note(self) -> str:
        return self.note_edit.text()

    def _on_save(self) -> None:
        self.save_requested.emit(self.note_edit.text())

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.close_requested.emit()
            event.accept()
            return
        super().keyPressEvent(event)
