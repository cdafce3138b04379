"""
Repository Module.

Provides specialized repository classes for the pet and photo tables.
"""

from healthmap.services.repositories.pet_repository import PetRepository
from healthmap.services.repositories.photo_repository import PhotoRepository

__all__ = [
    "PetRepository",
    "PhotoRepository",
]
