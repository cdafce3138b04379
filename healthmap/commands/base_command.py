"""
Base Command Module.

Defines the abstract base class and result type for optimistic marker
operations.

Classes:
    OperationState: Lifecycle of one pending operation.
    CommandResult: Standardized result object for command execution.
    BaseCommand: Abstract base class for apply / execute / revert commands.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from healthmap.core.marker import Marker

if TYPE_CHECKING:
    from healthmap.services.persistence_gateway import PersistenceGateway


class OperationState(Enum):
    """
    Lifecycle of an optimistic operation.

    IDLE -> APPLIED -> CONFIRMED
                    -> REVERTING -> ROLLED_BACK
    """

    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    REVERTING = "reverting"
    ROLLED_BACK = "rolled_back"


@dataclass
class CommandResult:
    """
    Standardized result object for command execution.

    Attributes:
        success (bool): True if the command executed successfully,
                        False otherwise.
        message (str): A human-readable message describing the result.
        errors (Dict[str, str]): Validation or service errors
                                 (field -> error content).
        command_name (str): The name of the command that generated
                            this result.
        data (Dict[str, Any]): Optional payload (e.g. an uploaded photo).
    """

    success: bool
    message: str = ""
    errors: Dict[str, str] = field(default_factory=dict)
    command_name: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


class BaseCommand(ABC):
    """
    Abstract base class for optimistic marker operations.

    A command mutates the local marker list first (``apply``), then asks
    the gateway to persist the change (``execute``). If persistence fails,
    ``rollback`` restores the state captured during ``apply``. The prior
    value is kept on the command as data so it can be inspected at any
    point of the lifecycle.
    """

    def __init__(self, pet_id: str) -> None:
        """
        Initializes the command.

        Args:
            pet_id: The pet whose health map this command mutates.
        """
        self.pet_id = pet_id
        self.previous: Optional[Marker] = None
        self._state = OperationState.IDLE

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def state(self) -> OperationState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_pending(self) -> bool:
        """True while applied locally and waiting for the gateway."""
        return self._state is OperationState.APPLIED

    @abstractmethod
    def marker_id(self) -> Optional[str]:
        """ID of the marker this command touches, if any."""

    @abstractmethod
    def _apply(self, markers: List[Marker]) -> bool:
        """Mutates ``markers`` in place. Returns False when nothing changed."""

    @abstractmethod
    def execute(self, gateway: "PersistenceGateway") -> CommandResult:
        """
        Performs exactly one gateway call for this operation.

        Args:
            gateway: The persistence gateway.

        Returns:
            CommandResult: Outcome reported by the gateway.
        """

    @abstractmethod
    def _revert(self, markers: List[Marker]) -> None:
        """Undoes the effect of ``_apply`` on ``markers``."""

    def apply(self, markers: List[Marker]) -> bool:
        """
        Applies the operation optimistically.

        Args:
            markers: The store's live marker list.

        Returns:
            bool: True if the list changed and persistence should follow.
        """
        if self._state is not OperationState.IDLE:
            raise RuntimeError(f"{self.name} already applied")
        if not self._apply(markers):
            return False
        self._state = OperationState.APPLIED
        return True

    def confirm(self) -> None:
        """Marks the operation as persisted."""
        if self._state is OperationState.APPLIED:
            self._state = OperationState.CONFIRMED

    def rollback(self, markers: List[Marker]) -> None:
        """
        Reverts the optimistic change after a persistence failure.

        Args:
            markers: The store's live marker list.
        """
        if self._state is not OperationState.APPLIED:
            return
        self._state = OperationState.REVERTING
        self._revert(markers)
        self._state = OperationState.ROLLED_BACK


def index_of(markers: List[Marker], marker_id: str) -> int:
    """Position of the marker with ``marker_id``, or -1."""
    for i, marker in enumerate(markers):
        if marker.id == marker_id:
            return i
    return -1
