"""
Interaction Controller Module.

Tracks what the user is doing on the health map canvas: nothing, placing a
new marker (a draft that is not yet in the store) or editing an existing
marker. Translates user intents into Marker Store calls.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from healthmap.core.marker import Marker
from healthmap.services.marker_store import MarkerStore

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    IDLE = "idle"
    PLACING = "placing"
    SELECTED = "selected"


@dataclass(frozen=True)
class InteractionState:
    """
    Current interaction. Only one mode is active at a time, so a draft and
    a selection can never coexist.
    """

    mode: InteractionMode = InteractionMode.IDLE
    draft: Optional[Tuple[float, float]] = None
    selected_id: Optional[str] = None

    @classmethod
    def idle(cls) -> "InteractionState":
        return cls()

    @classmethod
    def placing(cls, fx: float, fy: float) -> "InteractionState":
        return cls(mode=InteractionMode.PLACING, draft=(fx, fy))

    @classmethod
    def selected(cls, marker_id: str) -> "InteractionState":
        return cls(mode=InteractionMode.SELECTED, selected_id=marker_id)

    @property
    def editor_open(self) -> bool:
        return self.mode is not InteractionMode.IDLE


class InteractionController(QObject):
    """
    State machine between the canvas and the Marker Store.

    Signals:
        state_changed: Emitted with the new InteractionState on every
                       transition.
    """

    state_changed = Signal(object)

    def __init__(self, store: MarkerStore, parent: Optional[QObject] = None) -> None:
        """
        Args:
            store: The pet's marker store.
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self._store = store
        self._state = InteractionState.idle()
        self._store.markers_changed.connect(self._on_markers_changed)

    @property
    def state(self) -> InteractionState:
        return self._state

    def selected_marker(self) -> Optional[Marker]:
        if self._state.mode is not InteractionMode.SELECTED:
            return None
        return self._store.get(self._state.selected_id)

    # --- Intents -----------------------------------------------------------

    def press_canvas(self, fx: float, fy: float) -> None:
        """
        Starts placing a marker at (fx, fy). Any open selection or earlier
        draft is dropped without being saved.
        """
        self._set_state(InteractionState.placing(fx, fy))

    def press_marker(self, marker_id: str) -> None:
        """
        Selects a marker. Pressing the selected marker again deselects it.
        """
        if (
            self._state.mode is InteractionMode.SELECTED
            and self._state.selected_id == marker_id
        ):
            self._set_state(InteractionState.idle())
            return
        if self._store.get(marker_id) is None:
            logger.debug(f"Ignoring press on unknown marker {marker_id}")
            return
        self._set_state(InteractionState.selected(marker_id))

    def select_from_legend(self, marker_id: str) -> None:
        self.press_marker(marker_id)

    def save(self, note: str) -> None:
        """
        Commits the editor: places the draft or updates the selected note.
        """
        note = (note or "").strip()
        state = self._state
        if state.mode is InteractionMode.PLACING:
            fx, fy = state.draft
            self._set_state(InteractionState.idle())
            self._store.place(fx, fy, note)
        elif state.mode is InteractionMode.SELECTED:
            self._set_state(InteractionState.idle())
            self._store.update(state.selected_id, note)

    def delete(self) -> None:
        """
        Removes the selected marker. While placing, discards the draft.
        """
        state = self._state
        if state.mode is InteractionMode.SELECTED:
            self._set_state(InteractionState.idle())
            self._store.remove(state.selected_id)
        elif state.mode is InteractionMode.PLACING:
            self._set_state(InteractionState.idle())

    def cancel(self) -> None:
        """Closes the editor without touching the store."""
        self._set_state(InteractionState.idle())

    # --- Internals ---------------------------------------------------------

    def _set_state(self, state: InteractionState) -> None:
        if state == self._state:
            return
        logger.debug(f"Interaction {self._state.mode.value} -> {state.mode.value}")
        self._state = state
        self.state_changed.emit(state)

    def _on_markers_changed(self, markers: List[Marker]) -> None:
        if self._state.mode is not InteractionMode.SELECTED:
            return
        if not any(m.id == self._state.selected_id for m in markers):
            self._set_state(InteractionState.idle())
