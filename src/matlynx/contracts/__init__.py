"""
Record contracts.

Pydantic models for everything persisted in the store. Records are
stored with camelCase keys; Python code uses snake_case attributes.
"""

from matlynx.contracts.records import Address, Material, Profile, Record, User
from matlynx.contracts.types import UNIT_LABELS, MaterialUnit, UserRole

__all__ = [
    "Address",
    "Material",
    "Profile",
    "Record",
    "User",
    "UNIT_LABELS",
    "MaterialUnit",
    "UserRole",
]
