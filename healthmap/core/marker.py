"""
Marker Data Model.

Represents a point annotation on a pet's health map.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Marker:
    """
    Represents a marker on a pet's health map.

    Positions are stored as fractions [0.0, 1.0] of the logical canvas,
    never as pixels, so a marker lands in the same place on the body
    regardless of the display that created or shows it.

    Attributes:
        x: Fraction of the logical canvas width (0.0 = left edge).
        y: Fraction of the logical canvas height (0.0 = top edge).
        note: Free-text note, possibly empty.
        id: Client-generated unique identifier.
        created_at: ISO-8601 timestamp of creation. Display only.
    """

    x: float
    y: float
    note: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_utc_now_iso)

    @classmethod
    def create(cls, x: float, y: float, note: str = "") -> "Marker":
        """
        Creates a new marker with a fresh id and timestamp.

        Args:
            x: Fractional X coordinate.
            y: Fractional Y coordinate.
            note: Optional note text.

        Returns:
            Marker: The new marker.

        Raises:
            ValueError: If a coordinate is outside [0.0, 1.0].
        """
        for name, value in (("x", x), ("y", y)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Marker {name} must be within [0, 1], got {value}")
        return cls(x=float(x), y=float(y), note=note or "")

    def with_note(self, note: str) -> "Marker":
        """Returns a copy of this marker carrying a different note."""
        return replace(self, note=note)

    def created_date_label(self) -> str:
        """
        Short date used by the marker legend.

        Returns:
            str: e.g. "Mar 4, 2026", or the raw value if it cannot be parsed.
        """
        try:
            created = datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))
        except ValueError:
            return self.created_at
        return f"{created:%b} {created.day}, {created.year}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Converts the Marker instance to its persisted dictionary form.

        Returns:
            Dict[str, Any]: Dictionary representation of the marker.
        """
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "note": self.note,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Marker":
        """
        Creates a Marker instance from a dictionary.

        Args:
            data: Dictionary containing marker data. ``createdAt`` is accepted
                as an alias of ``created_at``.

        Returns:
            Marker: A new Marker instance.
        """
        created_at = data.get("created_at") or data.get("createdAt") or _utc_now_iso()
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            x=float(data["x"]),
            y=float(data["y"]),
            note=data.get("note") or "",
            created_at=created_at,
        )


def markers_to_storage(markers: List[Marker]) -> Optional[List[Dict[str, Any]]]:
    """
    Serializes a marker list for the pet record.

    An empty list is stored as ``None`` ("no markers").
    """
    if not markers:
        return None
    return [m.to_dict() for m in markers]


def markers_from_storage(data: Optional[List[Dict[str, Any]]]) -> List[Marker]:
    """Inverse of :func:`markers_to_storage`."""
    if not data:
        return []
    return [Marker.from_dict(item) for item in data]
