"""
Pet Health Map.

Spatial annotation of a pet's body silhouette or photo for grooming records.
"""

__version__ = "0.3.0"
