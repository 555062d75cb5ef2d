"""
Material Repository

CRUD and filters over the Materials collection. Every operation loads the
whole collection from the store and, when it mutates, writes the whole
collection back. Lookups by id act on the first match; unknown ids are a
silent no-op.
"""

import logging
import random
import string
import time
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from matlynx.clock import Clock, next_stamp, utcnow
from matlynx.contracts.records import Material, User
from matlynx.contracts.types import UNIT_LABELS, MaterialUnit
from matlynx.exceptions import FieldError, ValidationError
from matlynx.store.collections import MATERIALS_KEY, Store

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

# Fields the dealer can't change through an update
_IMMUTABLE_FIELDS = frozenset({
    "id",
    "dealer_email",
    "dealer_name",
    "dealer_phone",
    "created_at",
    "updated_at",
})


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Millisecond timestamp in base 36 followed by a random base-36 suffix."""
    suffix = "".join(random.choices(_BASE36, k=11))
    return _to_base36(int(time.time() * 1000)) + suffix


class MaterialRepository:
    """Materials collection."""

    def __init__(self, store: Store, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    def _load(self) -> list[Material]:
        return self.store.read_models(MATERIALS_KEY, Material)

    def _save(self, materials: list[Material]) -> None:
        self.store.write_models(MATERIALS_KEY, materials)

    @staticmethod
    def _index_of(materials: list[Material], material_id: str) -> int | None:
        return next((i for i, m in enumerate(materials) if m.id == material_id), None)

    # --- Queries ---

    def list_all(self) -> list[Material]:
        return self._load()

    def list_by_dealer(self, dealer_email: str) -> list[Material]:
        """Materials of one dealer, in insertion order."""
        return [m for m in self._load() if m.dealer_email == dealer_email]

    def list_active(self) -> list[Material]:
        """Active materials of all dealers, in insertion order."""
        return [m for m in self._load() if m.is_active]

    def get(self, material_id: str) -> Material | None:
        materials = self._load()
        index = self._index_of(materials, material_id)
        return materials[index] if index is not None else None

    # --- Mutations ---

    def new_listing(self, dealer: User, fields: dict[str, Any]) -> Material:
        """
        Build (without saving) a material for dealer with a fresh id.

        The dealer's name, email and phone are copied onto the listing.
        """
        now = self.clock()
        data = {k: v for k, v in Material.field_keys(fields).items() if k not in _IMMUTABLE_FIELDS}
        data.setdefault("is_active", True)
        return Material.model_validate({
            **data,
            "id": generate_id(),
            "dealer_email": dealer.email,
            "dealer_name": dealer.name,
            "dealer_phone": dealer.phone,
            "price_updated_at": now,
            "created_at": now,
            "updated_at": now,
        })

    def create(self, material: Material) -> Material:
        """Append a material. The caller supplies a fresh unique id."""
        materials = self._load()
        materials.append(material)
        self._save(materials)
        logger.info(
            "Material created",
            extra={"material_id": material.id, "dealer_email": material.dealer_email},
        )
        return material

    def update(self, material_id: str, fields: dict[str, Any]) -> Material | None:
        """
        Merge fields into the material with material_id.

        Stamps updatedAt, and priceUpdatedAt when the price changes.
        Returns None (and writes nothing) when the id is unknown.

        Raises:
            ValidationError: The merged fields don't form a valid material
        """
        materials = self._load()
        index = self._index_of(materials, material_id)
        if index is None:
            return None

        current = materials[index]
        changes = {k: v for k, v in Material.field_keys(fields).items() if k not in _IMMUTABLE_FIELDS}
        now = next_stamp(self.clock, current.updated_at)
        try:
            updated = Material.model_validate({**current.model_dump(), **changes, "updated_at": now})
        except PydanticValidationError as e:
            raise ValidationError(
                [FieldError(str(err["loc"][0]), err["msg"]) for err in e.errors()]
            ) from e
        if updated.price != current.price:
            updated.price_updated_at = now

        materials[index] = updated
        self._save(materials)
        logger.info("Material updated", extra={"material_id": material_id})
        return updated

    def delete(self, material_id: str) -> None:
        materials = self._load()
        index = self._index_of(materials, material_id)
        if index is None:
            return
        del materials[index]
        self._save(materials)
        logger.info("Material deleted", extra={"material_id": material_id})

    def toggle_active(self, material_id: str) -> Material | None:
        """Flip isActive. Returns None when the id is unknown."""
        materials = self._load()
        index = self._index_of(materials, material_id)
        if index is None:
            return None

        material = materials[index]
        material.is_active = not material.is_active
        material.updated_at = next_stamp(self.clock, material.updated_at)
        self._save(materials)
        logger.info(
            "Material toggled",
            extra={"material_id": material_id, "is_active": material.is_active},
        )
        return material


def search_materials(materials: list[Material], query: str) -> list[Material]:
    """Case-insensitive substring match on name, description and dealer name."""
    if not query.strip():
        return list(materials)
    q = query.lower()
    return [
        m for m in materials
        if q in m.name.lower() or q in m.description.lower() or q in m.dealer_name.lower()
    ]


def format_unit(unit: MaterialUnit | str) -> str:
    try:
        return UNIT_LABELS[MaterialUnit(unit)]
    except ValueError:
        return str(unit)


def dealer_contact_links(material: Material, app_name: str = "MATLYNX") -> dict[str, str]:
    """Call, WhatsApp and email links for contacting the dealer of material."""
    message = (
        f'Hi, I\'m interested in your material "{material.name}" listed on {app_name}. '
        "Please share more details."
    )
    digits = "".join(ch for ch in material.dealer_phone if ch.isdigit())
    return {
        "call": f"tel:{material.dealer_phone}",
        "whatsapp": f"https://wa.me/{digits}?text={quote(message, safe='')}",
        "email": f"mailto:{material.dealer_email}?subject={quote('Inquiry: ' + material.name)}",
    }
