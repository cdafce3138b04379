"""
Protocol Interfaces for External Collaborators.

This module defines Protocol interfaces (PEP 544) for the two services the
health map depends on. The pet-record subsystem owns marker persistence and
the photo-gallery subsystem owns photo storage; any class implementing the
methods below satisfies the contract without explicit inheritance.

Results are plain dictionaries shaped like the services' wire responses:
``{"success": bool, "error": str (optional), ...}``.
"""

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class MarkerPersistenceService(Protocol):
    """
    Persists the ordered marker list attached to a pet record.
    """

    def save_marker(self, pet_id: str, marker: Dict[str, Any]) -> Dict[str, Any]:
        """
        Upserts one marker into the pet's list, keyed by marker id.

        Args:
            pet_id: Owning pet.
            marker: Marker in persisted form ``{id, x, y, note, created_at}``.

        Returns:
            Dict with at least ``success``.
        """
        ...

    def delete_marker(self, pet_id: str, marker_id: str) -> Dict[str, Any]:
        """Removes one marker by id from the pet's list."""
        ...

    def clear_markers(self, pet_id: str) -> Dict[str, Any]:
        """Removes every marker from the pet's list."""
        ...

    def get_markers(self, pet_id: str) -> List[Dict[str, Any]]:
        """Returns the pet's markers in insertion order."""
        ...


@runtime_checkable
class PhotoStorageService(Protocol):
    """
    Stores uploaded pet photos and returns fetchable URLs.
    """

    def upload_photo(self, pet_id: str, data: bytes) -> Dict[str, Any]:
        """
        Stores raw image bytes for a pet.

        Args:
            pet_id: Owning pet.
            data: Encoded image bytes.

        Returns:
            Dict with ``success`` and, on success,
            ``photo: {id, url, created_at}``.
        """
        ...
