"""
Health Map Widget Module.

Container widget for the health map: header with the marker count, toolbar,
the interactive canvas with its popup note editor, a status line and the
marker legend.
"""

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QEvent, QObject, QPoint, QPointF, Qt, QTimer, Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QToolBar,
    QVBoxLayout,
    QWidget,
)
from shiboken6 import isValid

from healthmap.app.constants import (
    IMAGE_FILE_FILTER,
    STATUS_EXPORT_DONE,
    STATUS_EXPORT_FAILED,
    STATUS_EXPORTING,
    STATUS_MESSAGE_TIMEOUT_MS,
    STATUS_SAVE_FAILED,
    STATUS_SAVING,
)
from healthmap.commands.base_command import CommandResult
from healthmap.core.background import Background
from healthmap.core.marker import Marker
from healthmap.gui.widgets.health_map.health_map_view import HealthMapView
from healthmap.gui.widgets.health_map.interaction_controller import (
    InteractionController,
    InteractionMode,
    InteractionState,
)
from healthmap.gui.widgets.health_map.marker_popup import MarkerPopup
from healthmap.services.background_provider import BackgroundProvider
from healthmap.services.export_pipeline import HealthMapExporter
from healthmap.services.marker_store import MarkerStore
from healthmap.services.worker import InlineExecutor, TaskExecutor

logger = logging.getLogger(__name__)

HINT_TEXT = "Tap on the dog to place a marker"


def marker_count_label(count: int) -> str:
    return f"{count} marker{'' if count == 1 else 's'}"


def legend_text(marker: Marker) -> str:
    return f"{marker.note or 'No note'}    {marker.created_date_label()}"


class HealthMapWidget(QWidget):
    """
    The pet health map.

    Signals:
        photo_exported: A flattened health map was uploaded.
                        Args: (photo: Photo)
    """

    photo_exported = Signal(object)

    def __init__(
        self,
        store: MarkerStore,
        background: BackgroundProvider,
        exporter: HealthMapExporter,
        executor: Optional[TaskExecutor] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        """
        Initializes the HealthMapWidget.

        Args:
            store: The pet's marker store.
            background: Background selection for the canvas.
            exporter: Flattens the map for "Save to Photos".
            executor: Runs exports. Defaults to InlineExecutor.
            parent: Parent widget.
        """
        super().__init__(parent)
        self.store = store
        self.background = background
        self.exporter = exporter
        self._executor = executor or InlineExecutor()
        self.controller = InteractionController(store, self)
        self._filter_installed = False
        self._exporting = False
        self._transient_message = ""

        self._message_timer = QTimer(self)
        self._message_timer.setSingleShot(True)
        self._message_timer.timeout.connect(self._clear_transient_message)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        # Header
        header = QHBoxLayout()
        titles = QVBoxLayout()
        self.title_label = QLabel("Health Map")
        self.title_label.setStyleSheet("font-size: 16px; font-weight: 600;")
        self.hint_label = QLabel(HINT_TEXT)
        self.hint_label.setStyleSheet("color: #7d977d;")
        titles.addWidget(self.title_label)
        titles.addWidget(self.hint_label)
        header.addLayout(titles, 1)
        self.count_badge = QLabel()
        self.count_badge.setStyleSheet(
            "background: #eef3ee; color: #5f7a5f; border-radius: 8px; padding: 2px 8px;"
        )
        header.addWidget(self.count_badge, 0, Qt.AlignmentFlag.AlignTop)
        layout.addLayout(header)

        # Toolbar
        self.toolbar = QToolBar(self)
        self.action_use_photo = QAction("Use Photo...", self)
        self.action_use_photo.triggered.connect(self._choose_photo)
        self.toolbar.addAction(self.action_use_photo)

        self.action_reset_background = QAction("Use Silhouette", self)
        self.action_reset_background.triggered.connect(self.background.clear_photo)
        self.toolbar.addAction(self.action_reset_background)

        self.action_show_silhouette = QAction("Show Outline", self)
        self.action_show_silhouette.setCheckable(True)
        self.action_show_silhouette.setChecked(True)
        self.action_show_silhouette.toggled.connect(self._on_silhouette_toggled)
        self.toolbar.addAction(self.action_show_silhouette)

        self.toolbar.addSeparator()

        self.action_export = QAction("Save to Photos", self)
        self.action_export.triggered.connect(self.export)
        self.toolbar.addAction(self.action_export)

        self.action_clear = QAction("Clear All", self)
        self.action_clear.triggered.connect(self._confirm_clear)
        self.toolbar.addAction(self.action_clear)
        layout.addWidget(self.toolbar)

        # Canvas with the popup floating over it
        self.canvas_container = QWidget(self)
        canvas_layout = QVBoxLayout(self.canvas_container)
        canvas_layout.setContentsMargins(0, 0, 0, 0)
        self.view = HealthMapView(self.canvas_container, executor=self._executor)
        canvas_layout.addWidget(self.view)
        self.popup = MarkerPopup(self.canvas_container)
        layout.addWidget(self.canvas_container, 1)

        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setStyleSheet("color: #7d977d; font-size: 11px;")
        layout.addWidget(self.status_label)

        # Legend
        self.legend_title = QLabel("Markers")
        self.legend_title.setStyleSheet("font-weight: 600;")
        layout.addWidget(self.legend_title)
        self.legend = QListWidget(self)
        self.legend.setMaximumHeight(160)
        self.legend.itemClicked.connect(self._on_legend_clicked)
        layout.addWidget(self.legend)

        # Wiring
        self.view.canvas_pressed.connect(self.controller.press_canvas)
        self.view.marker_pressed.connect(self.controller.press_marker)
        self.popup.save_requested.connect(self.controller.save)
        self.popup.delete_requested.connect(self.controller.delete)
        self.popup.close_requested.connect(self.controller.cancel)
        self.controller.state_changed.connect(self._on_state_changed)

        self.store.markers_changed.connect(self._on_markers_changed)
        self.store.pending_changed.connect(self._on_pending_changed)
        self.store.operation_failed.connect(self._on_operation_failed)
        self.background.background_changed.connect(self._on_background_changed)

        self._on_background_changed(self.background.current())
        self._on_markers_changed(list(self.store.list()))
        self._update_status()

    # --- Store / background updates ----------------------------------------

    def _on_markers_changed(self, markers: List[Marker]) -> None:
        self.view.set_markers(markers)

        count = len(markers)
        self.count_badge.setText(marker_count_label(count))
        self.count_badge.setVisible(count > 0)
        self.action_export.setEnabled(count > 0 and not self._exporting)
        self.action_clear.setEnabled(count > 0)

        self.legend.clear()
        for marker in markers:
            item = QListWidgetItem(legend_text(marker))
            item.setData(Qt.ItemDataRole.UserRole, marker.id)
            item.setToolTip(marker.note)
            self.legend.addItem(item)
        self.legend_title.setVisible(count > 0)
        self.legend.setVisible(count > 0)

    def _on_background_changed(self, background: Background) -> None:
        self.view.set_background(background)
        self.action_reset_background.setEnabled(background.is_photo)
        self.action_show_silhouette.setEnabled(background.is_photo)

    def _on_silhouette_toggled(self, checked: bool) -> None:
        self.view.set_silhouette_visible(checked)

    def _on_pending_changed(self, count: int) -> None:
        self._update_status()

    def _on_operation_failed(self, message: str) -> None:
        logger.warning(f"Health map change rolled back: {message}")
        self.show_message(STATUS_SAVE_FAILED)

    # --- Interaction -------------------------------------------------------

    def _on_state_changed(self, state: InteractionState) -> None:
        if state.mode is InteractionMode.PLACING:
            self.view.set_selected(None)
            self.view.show_draft(*state.draft)
            self._show_popup(state)
        elif state.mode is InteractionMode.SELECTED:
            self.view.hide_draft()
            self.view.set_selected(state.selected_id)
            self._show_popup(state)
        else:
            self.view.hide_draft()
            self.view.set_selected(None)
            self._hide_popup()

    def _show_popup(self, state: InteractionState) -> None:
        if state.mode is InteractionMode.PLACING:
            fx, fy = state.draft
            note, is_new = "", True
        else:
            marker = self.store.get(state.selected_id)
            if marker is None:
                return
            fx, fy, note, is_new = marker.x, marker.y, marker.note, False

        anchor = self.view.anchor_for(fx, fy)
        if anchor is None:
            anchor = QPointF(0, 0)
        container_point = self.view.viewport().mapTo(
            self.canvas_container, anchor.toPoint()
        )
        self.popup.open_for(note, is_new, QPointF(container_point))
        self._install_outside_click_filter()

    def _hide_popup(self) -> None:
        self._remove_outside_click_filter()
        self.popup.hide()

    def _on_legend_clicked(self, item: QListWidgetItem) -> None:
        marker_id = item.data(Qt.ItemDataRole.UserRole)
        if marker_id:
            self.controller.select_from_legend(marker_id)

    def _install_outside_click_filter(self) -> None:
        app = QApplication.instance()
        if app is not None and not self._filter_installed:
            app.installEventFilter(self)
            self._filter_installed = True

    def _remove_outside_click_filter(self) -> None:
        app = QApplication.instance()
        if app is not None and self._filter_installed:
            app.removeEventFilter(self)
            self._filter_installed = False

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        """
        Closes the editor on a press anywhere but the popup, the canvas and
        the legend. The canvas and legend handle their own presses.
        Events are never consumed.
        """
        if event.type() == QEvent.Type.MouseButtonPress and self.popup.isVisible():
            global_pos = event.globalPosition().toPoint()
            if not self.is_inside_editor_area(global_pos):
                logger.debug("Outside press closes marker editor")
                self.controller.cancel()
        return False

    def is_inside_editor_area(self, global_pos: QPoint) -> bool:
        """True if a global position is on the popup, the canvas or the legend."""
        if self.popup.isVisible() and self.popup.rect().contains(
            self.popup.mapFromGlobal(global_pos)
        ):
            return True
        for area in (self.view.viewport(), self.legend.viewport()):
            if area.isVisible() and area.rect().contains(area.mapFromGlobal(global_pos)):
                return True
        return False

    # --- Toolbar actions ---------------------------------------------------

    def _choose_photo(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Choose Background Photo", "", IMAGE_FILE_FILTER
        )
        if file_path:
            self.background.set_photo(Path(file_path).resolve().as_uri())

    def _confirm_clear(self) -> None:
        if len(self.store) == 0:
            return
        reply = QMessageBox.question(
            self,
            "Clear Health Map",
            f"Remove all {marker_count_label(len(self.store))}?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.controller.cancel()
            self.store.clear()

    def export(self) -> bool:
        """
        Flattens the health map and uploads it as a photo.

        Returns:
            bool: False if export is unavailable (no markers, or busy).
        """
        if self._exporting or not self.exporter.can_export:
            return False
        self._exporting = True
        self.action_export.setEnabled(False)
        self.show_message(STATUS_EXPORTING, timeout_ms=0)
        if not self.exporter.flatten_async(self._executor, self._on_export_finished):
            self._exporting = False
            self.action_export.setEnabled(len(self.store) > 0)
            self._clear_transient_message()
            return False
        return True

    def _on_export_finished(self, result: CommandResult) -> None:
        # The widget may have been closed while the export was running
        if not isValid(self):
            return
        self._exporting = False
        self.action_export.setEnabled(len(self.store) > 0)
        if result.success:
            self.show_message(STATUS_EXPORT_DONE)
            photo = result.data.get("photo")
            if photo is not None:
                self.photo_exported.emit(photo)
        else:
            logger.error(f"Health map export failed: {result.message}")
            self.show_message(f"{STATUS_EXPORT_FAILED} {result.message}".strip())

    # --- Status line -------------------------------------------------------

    def show_message(self, text: str, timeout_ms: int = STATUS_MESSAGE_TIMEOUT_MS) -> None:
        """Shows a transient status message; 0 keeps it until replaced."""
        self._transient_message = text
        if timeout_ms > 0:
            self._message_timer.start(timeout_ms)
        else:
            self._message_timer.stop()
        self._update_status()

    def _clear_transient_message(self) -> None:
        self._transient_message = ""
        self._update_status()

    def _update_status(self) -> None:
        if self._transient_message:
            text = self._transient_message
        elif self.store.pending_count > 0:
            text = STATUS_SAVING
        else:
            text = ""
        self.status_label.setText(text)

    def status_text(self) -> str:
        return self.status_label.text()

    def closeEvent(self, event) -> None:
        self._remove_outside_click_filter()
        super().closeEvent(event)
