"""
Health Map Background Model.

The background drawn behind the markers: the default silhouette or a photo.
Markers are always defined relative to the logical canvas, so switching
background never changes what a marker means.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BackgroundKind(Enum):
    """Kinds of health map background."""

    SILHOUETTE = "silhouette"
    PHOTO = "photo"


@dataclass(frozen=True)
class Background:
    """
    Current background selection.

    Attributes:
        kind: Silhouette or photo.
        url: Location of the photo. None for the silhouette.
    """

    kind: BackgroundKind
    url: Optional[str] = None

    @classmethod
    def silhouette(cls) -> "Background":
        return cls(BackgroundKind.SILHOUETTE)

    @classmethod
    def photo(cls, url: str) -> "Background":
        return cls(BackgroundKind.PHOTO, url)

    @property
    def is_photo(self) -> bool:
        return self.kind is BackgroundKind.PHOTO


@dataclass(frozen=True)
class UsePhotoAsBackground:
    """
    Request to show a stored photo behind the health map.

    Sent by the photo strip and consumed only by the BackgroundProvider.

    Attributes:
        photo_id: ID of the stored photo.
        url: Location of the photo image.
    """

    photo_id: str
    url: str
