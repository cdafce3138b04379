"""
Marker Commands Module.

Provides the optimistic operations on a pet's health map:
- PlaceMarkerCommand: Add a new marker
- UpdateMarkerNoteCommand: Replace a marker's note
- RemoveMarkerCommand: Delete a marker
- ClearMarkersCommand: Delete every marker

Each command applies its change to the local list first, persists it with a
single gateway call, and can roll the local change back on failure.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from healthmap.commands.base_command import BaseCommand, CommandResult, index_of
from healthmap.core.marker import Marker

if TYPE_CHECKING:
    from healthmap.services.persistence_gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class PlaceMarkerCommand(BaseCommand):
    """
    Command to place a new marker.
    """

    def __init__(self, pet_id: str, marker: Marker) -> None:
        """
        Args:
            pet_id: Owning pet.
            marker: The fully built marker (id generated client-side).
        """
        super().__init__(pet_id)
        self.marker = marker

    def marker_id(self) -> Optional[str]:
        return self.marker.id

    def _apply(self, markers: List[Marker]) -> bool:
        markers.append(self.marker)
        logger.debug(
            f"Placed marker {self.marker.id} at ({self.marker.x:.3f}, "
            f"{self.marker.y:.3f})"
        )
        return True

    def execute(self, gateway: "PersistenceGateway") -> CommandResult:
        result = gateway.save_marker(self.pet_id, self.marker)
        result.command_name = self.name
        return result

    def _revert(self, markers: List[Marker]) -> None:
        markers[:] = [m for m in markers if m.id != self.marker.id]
        logger.warning(f"Rolled back placement of marker {self.marker.id}")


class UpdateMarkerNoteCommand(BaseCommand):
    """
    Command to replace the note of an existing marker.
    Snapshots the full marker before the change for rollback.
    """

    def __init__(self, pet_id: str, marker_id: str, note: str) -> None:
        """
        Args:
            pet_id: Owning pet.
            marker_id: The marker to edit.
            note: The new note text.
        """
        super().__init__(pet_id)
        self._marker_id = marker_id
        self.note = note
        self.updated: Optional[Marker] = None

    def marker_id(self) -> Optional[str]:
        return self._marker_id

    def _apply(self, markers: List[Marker]) -> bool:
        index = index_of(markers, self._marker_id)
        if index < 0:
            logger.debug(f"Update ignored: marker {self._marker_id} not found")
            return False

        self.previous = markers[index]
        self.updated = self.previous.with_note(self.note)
        markers[index] = self.updated
        return True

    def execute(self, gateway: "PersistenceGateway") -> CommandResult:
        result = gateway.save_marker(self.pet_id, self.updated)
        result.command_name = self.name
        return result

    def _revert(self, markers: List[Marker]) -> None:
        index = index_of(markers, self._marker_id)
        if index >= 0:
            markers[index] = self.previous
            logger.warning(f"Rolled back note of marker {self._marker_id}")


class RemoveMarkerCommand(BaseCommand):
    """
    Command to delete a marker, storing it for rollback.
    """

    def __init__(self, pet_id: str, marker_id: str) -> None:
        """
        Args:
            pet_id: Owning pet.
            marker_id: The marker to delete.
        """
        super().__init__(pet_id)
        self._marker_id = marker_id
        self.previous_index = -1

    def marker_id(self) -> Optional[str]:
        return self._marker_id

    def _apply(self, markers: List[Marker]) -> bool:
        index = index_of(markers, self._marker_id)
        if index < 0:
            logger.debug(f"Remove ignored: marker {self._marker_id} not found")
            return False

        self.previous = markers.pop(index)
        self.previous_index = index
        return True

    def execute(self, gateway: "PersistenceGateway") -> CommandResult:
        result = gateway.delete_marker(self.pet_id, self._marker_id)
        result.command_name = self.name
        return result

    def _revert(self, markers: List[Marker]) -> None:
        if index_of(markers, self._marker_id) >= 0:
            return
        # Original slot when still valid, otherwise the end of the list
        position = min(self.previous_index, len(markers))
        markers.insert(position, self.previous)
        logger.warning(f"Rolled back deletion of marker {self._marker_id}")


class ClearMarkersCommand(BaseCommand):
    """
    Command to delete every marker of a pet, storing the list for rollback.
    """

    def __init__(self, pet_id: str) -> None:
        super().__init__(pet_id)
        self.previous_markers: List[Marker] = []

    def marker_id(self) -> Optional[str]:
        return None

    def _apply(self, markers: List[Marker]) -> bool:
        if not markers:
            return False
        self.previous_markers = list(markers)
        markers.clear()
        return True

    def execute(self, gateway: "PersistenceGateway") -> CommandResult:
        result = gateway.clear_markers(self.pet_id)
        result.command_name = self.name
        return result

    def _revert(self, markers: List[Marker]) -> None:
        present = {m.id for m in markers}
        restored = [m for m in self.previous_markers if m.id not in present]
        markers[:0] = restored
        logger.warning(f"Rolled back clear of {len(restored)} marker(s)")
