"""
Record Models

Pydantic models for the User, Profile and Material collections and the
session pointer. Field aliases are camelCase so persisted JSON keeps the
shape the marketplace has always stored.
"""

from datetime import date, datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from matlynx.contracts.types import MaterialUnit, UserRole

R = TypeVar("R", bound="Record")


class Record(BaseModel):
    """Base for persisted records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_record(cls: type[R], data: dict[str, Any]) -> R:
        """Create a model from a stored (camelCase) dict."""
        return cls.model_validate(data)

    @classmethod
    def field_keys(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Rename camelCase alias keys in data to field names; other keys pass through."""
        names = {info.alias: name for name, info in cls.model_fields.items() if info.alias}
        return {names.get(key, key): value for key, value in data.items()}

    def to_record(self) -> dict[str, Any]:
        """Convert to a JSON-ready camelCase dict; unset optionals are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class User(Record):
    """
    Identity record.

    Created at registration, never updated or deleted. The password is
    kept in clear text: the marketplace has always compared plaintext,
    and any production deployment must replace this with a salted hash.
    """

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique key, lower-cased at registration")
    password: str = Field(..., description="Plaintext password")
    phone: str = Field(..., description="Contact phone")
    whatsapp: Optional[str] = Field(None, description="WhatsApp number, defaults to phone")
    role: UserRole
    created_at: datetime

    @property
    def dashboard(self) -> str:
        return "/dealer" if self.role == UserRole.DEALER else "/contractor"


class Address(Record):
    street: str = ""
    area: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class Profile(Record):
    """
    Per-user supplementary record, keyed by userId (the user's email).

    is_complete is derived; it is recomputed on every save and every
    read, so the stored value is informational only.
    """

    user_id: str
    full_name: str = ""
    role: UserRole
    shop_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: str = ""
    whatsapp: Optional[str] = None
    address: Address = Field(default_factory=Address)
    profile_photo: Optional[str] = Field(None, description="Image data URL")
    is_complete: bool = False
    created_at: datetime
    updated_at: datetime


class Material(Record):
    """
    A material listing owned by exactly one dealer.

    dealer_email/dealer_name/dealer_phone are a snapshot of the dealer
    taken at creation; later User or Profile edits do not touch them.
    """

    id: str
    dealer_email: str
    dealer_name: str
    dealer_phone: str
    name: str
    price: float
    quantity: float
    unit: MaterialUnit
    description: str = ""
    image_url: Optional[str] = Field(None, description="Image data URL")
    is_active: bool = True
    price_updated_at: datetime
    price_valid_until: Optional[date] = None
    created_at: datetime
    updated_at: datetime
