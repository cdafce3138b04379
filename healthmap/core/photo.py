"""
Photo Data Model.

A stored pet photo as returned by the photo storage service.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Photo:
    """
    A stored image attached to a pet.

    Attributes:
        id: Unique identifier of the stored photo.
        url: Stable URL the image can be fetched from.
        created_at: ISO-8601 timestamp of the upload.
    """

    id: str
    url: str
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Photo":
        return cls(
            id=data["id"],
            url=data["url"],
            created_at=data.get("created_at") or data.get("createdAt") or "",
        )
