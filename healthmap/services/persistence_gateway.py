"""
Persistence Gateway Module.

Thin pass-through between the health map and its two external
collaborators. Each call maps to exactly one service request: no retry,
no batching, no caching. Service responses and raised exceptions are both
turned into CommandResult objects so callers only act on success/failure.
"""

import logging
from typing import Any, Dict, List

from healthmap.commands.base_command import CommandResult
from healthmap.core.marker import Marker
from healthmap.core.photo import Photo
from healthmap.core.protocols import MarkerPersistenceService, PhotoStorageService

logger = logging.getLogger(__name__)


def _to_result(response: Dict[str, Any], failure_message: str) -> CommandResult:
    if response and response.get("success"):
        return CommandResult(success=True)
    error = (response or {}).get("error") or failure_message
    return CommandResult(success=False, message=error, errors={"service": error})


class PersistenceGateway:
    """
    Adapts marker and photo operations to the external service call shapes.
    """

    def __init__(
        self,
        marker_service: MarkerPersistenceService,
        photo_service: PhotoStorageService,
    ) -> None:
        """
        Args:
            marker_service: Owner of the pet's persisted marker list.
            photo_service: Owner of uploaded pet photos.
        """
        self._marker_service = marker_service
        self._photo_service = photo_service

    def save_marker(self, pet_id: str, marker: Marker) -> CommandResult:
        """
        Upserts one marker.

        Args:
            pet_id: Owning pet.
            marker: Marker to persist.

        Returns:
            CommandResult: success or failure.
        """
        try:
            response = self._marker_service.save_marker(pet_id, marker.to_dict())
        except Exception as e:
            logger.error(f"Failed to save marker {marker.id} for pet {pet_id}: {e}")
            return CommandResult(success=False, message=f"Failed to save marker: {e}")
        result = _to_result(response, "Failed to save marker.")
        if result.success:
            logger.info(f"Saved marker {marker.id} for pet {pet_id}")
        return result

    def delete_marker(self, pet_id: str, marker_id: str) -> CommandResult:
        """
        Removes one marker by id.
        """
        try:
            response = self._marker_service.delete_marker(pet_id, marker_id)
        except Exception as e:
            logger.error(f"Failed to delete marker {marker_id} for pet {pet_id}: {e}")
            return CommandResult(
                success=False, message=f"Failed to delete marker: {e}"
            )
        result = _to_result(response, "Failed to delete marker.")
        if result.success:
            logger.info(f"Deleted marker {marker_id} for pet {pet_id}")
        return result

    def clear_markers(self, pet_id: str) -> CommandResult:
        """
        Removes all markers of a pet.
        """
        try:
            response = self._marker_service.clear_markers(pet_id)
        except Exception as e:
            logger.error(f"Failed to clear health map for pet {pet_id}: {e}")
            return CommandResult(
                success=False, message=f"Failed to clear health map: {e}"
            )
        return _to_result(response, "Failed to clear health map.")

    def load_markers(self, pet_id: str) -> List[Marker]:
        """
        Fetches the persisted markers of a pet.

        Returns:
            List[Marker]: Markers in insertion order. Empty on failure.
        """
        try:
            rows = self._marker_service.get_markers(pet_id) or []
        except Exception as e:
            logger.error(f"Failed to load markers for pet {pet_id}: {e}")
            return []
        markers = []
        for row in rows:
            try:
                markers.append(Marker.from_dict(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed marker for pet {pet_id}: {e}")
        return markers

    def upload_photo(self, pet_id: str, data: bytes) -> CommandResult:
        """
        Uploads image bytes as a pet photo.

        Args:
            pet_id: Owning pet.
            data: Encoded image.

        Returns:
            CommandResult: On success ``data["photo"]`` holds the stored Photo.
        """
        try:
            response = self._photo_service.upload_photo(pet_id, data)
        except Exception as e:
            logger.error(f"Photo upload failed for pet {pet_id}: {e}")
            return CommandResult(success=False, message=f"Upload failed: {e}")

        result = _to_result(response, "Upload failed.")
        if not result.success:
            return result

        photo_data = response.get("photo")
        if not photo_data:
            return CommandResult(success=False, message="Upload returned no photo.")
        photo = Photo.from_dict(photo_data)
        logger.info(f"Uploaded photo {photo.id} for pet {pet_id}")
        result.data["photo"] = photo
        return result
