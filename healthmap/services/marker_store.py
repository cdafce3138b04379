"""
Marker Store Module.

In-memory, pet-scoped list of health map markers. The store is the single
source of truth for rendering: every edit is applied locally at once and
persisted in the background; a failed persistence rolls back exactly that
edit.
"""

import logging
from typing import List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from healthmap.commands.base_command import BaseCommand, CommandResult
from healthmap.commands.marker_commands import (
    ClearMarkersCommand,
    PlaceMarkerCommand,
    RemoveMarkerCommand,
    UpdateMarkerNoteCommand,
)
from healthmap.core.marker import Marker
from healthmap.services.persistence_gateway import PersistenceGateway
from healthmap.services.worker import InlineExecutor, TaskExecutor

logger = logging.getLogger(__name__)


class MarkerStore(QObject):
    """
    Ordered marker collection for one pet with optimistic mutation.

    Operations on the same marker are not sequenced against each other;
    whichever gateway response arrives last decides the final state.

    Signals:
        markers_changed: Emitted with a snapshot list after every change,
                         including rollbacks.
        pending_changed: Number of operations awaiting the gateway.
        operation_failed: Human-readable message after a rollback.
        operation_confirmed: Name of the command that was persisted.
    """

    markers_changed = Signal(list)
    pending_changed = Signal(int)
    operation_failed = Signal(str)
    operation_confirmed = Signal(str)

    def __init__(
        self,
        pet_id: str,
        gateway: PersistenceGateway,
        executor: Optional[TaskExecutor] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """
        Args:
            pet_id: The pet whose markers are managed.
            gateway: Persistence gateway for save/delete calls.
            executor: Runs gateway calls. Defaults to InlineExecutor.
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self.pet_id = pet_id
        self._gateway = gateway
        self._executor = executor or InlineExecutor()
        self._markers: List[Marker] = []
        self._pending: List[BaseCommand] = []

    # --- Queries -----------------------------------------------------------

    def list(self) -> Tuple[Marker, ...]:
        """Read-only snapshot of the markers in insertion order."""
        return tuple(self._markers)

    def get(self, marker_id: str) -> Optional[Marker]:
        for marker in self._markers:
            if marker.id == marker_id:
                return marker
        return None

    def __len__(self) -> int:
        return len(self._markers)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def pending_operations(self) -> Tuple[BaseCommand, ...]:
        """Commands applied locally and still waiting for the gateway."""
        return tuple(self._pending)

    # --- Loading -----------------------------------------------------------

    def load(self) -> None:
        """
        Replaces the local list with the persisted markers.
        Synchronous: called once when the health map opens.
        """
        self._markers = self._gateway.load_markers(self.pet_id)
        logger.info(f"Loaded {len(self._markers)} marker(s) for pet {self.pet_id}")
        self._emit_changed()

    def set_markers(self, markers: List[Marker]) -> None:
        """Replaces the local list without persisting (initial data)."""
        self._markers = list(markers)
        self._emit_changed()

    # --- Mutations ---------------------------------------------------------

    def place(self, fx: float, fy: float, note: str = "") -> Marker:
        """
        Places a new marker and persists it in the background.

        Args:
            fx: Fractional X coordinate.
            fy: Fractional Y coordinate.
            note: Note text.

        Returns:
            Marker: The marker, already visible in the store.
        """
        marker = Marker.create(fx, fy, note)
        self._submit(PlaceMarkerCommand(self.pet_id, marker))
        return marker

    def update(self, marker_id: str, note: str) -> None:
        """
        Replaces a marker's note. Unknown ids are ignored.
        """
        self._submit(UpdateMarkerNoteCommand(self.pet_id, marker_id, note))

    def remove(self, marker_id: str) -> None:
        """
        Deletes a marker. Unknown ids are ignored.
        """
        self._submit(RemoveMarkerCommand(self.pet_id, marker_id))

    def clear(self) -> None:
        """Deletes every marker."""
        self._submit(ClearMarkersCommand(self.pet_id))

    # --- Internals ---------------------------------------------------------

    def _submit(self, command: BaseCommand) -> None:
        if not command.apply(self._markers):
            return

        self._pending.append(command)
        self._emit_changed()
        self.pending_changed.emit(len(self._pending))

        self._executor.submit(
            lambda: command.execute(self._gateway),
            lambda result: self._on_command_finished(command, result),
            description=f"{command.name} {command.marker_id() or ''}".strip(),
        )

    def _on_command_finished(self, command: BaseCommand, result: CommandResult) -> None:
        if command in self._pending:
            self._pending.remove(command)

        if result.success:
            command.confirm()
            logger.debug(f"{command.name} confirmed for pet {self.pet_id}")
            self.operation_confirmed.emit(command.name)
        else:
            command.rollback(self._markers)
            logger.warning(
                f"{command.name} failed for pet {self.pet_id}: {result.message}"
            )
            self._emit_changed()
            self.operation_failed.emit(result.message or "Save failed.")

        self.pending_changed.emit(len(self._pending))

    def _emit_changed(self) -> None:
        self.markers_changed.emit(list(self._markers))
