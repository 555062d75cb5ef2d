"""
Form validation.

Each parse_* function checks a whole form, collects every field error,
and raises ValidationError before anything is written. On success it
returns clean values ready for the auth, profile or material services.
"""

import math
import re
from datetime import date
from typing import Any, Mapping

from matlynx.clock import Clock, utcnow
from matlynx.contracts.records import Address, User
from matlynx.contracts.types import MaterialUnit, UserRole
from matlynx.exceptions import FieldError, ValidationError
from matlynx.profiles import is_valid_phone
from matlynx.settings import get_settings

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")
MIN_PASSWORD_LENGTH = 6

REQUIRED = "Please fill in all fields"


def _text(form: Mapping[str, Any], name: str) -> str:
    value = form.get(name)
    return "" if value is None else str(value).strip()


def data_url_size(url: str) -> int:
    """Decoded byte size of a data: URL (or raw length for anything else)."""
    if url.startswith("data:") and "," in url:
        header, payload = url.split(",", 1)
        if header.endswith(";base64"):
            padding = payload.count("=", max(len(payload) - 2, 0))
            return len(payload) * 3 // 4 - padding
        return len(payload)
    return len(url)


def _positive_number(form: Mapping[str, Any], name: str, message: str, errors: list[FieldError]) -> float | None:
    raw = _text(form, name)
    try:
        value = float(raw)
    except ValueError:
        errors.append(FieldError(name, message))
        return None
    if not math.isfinite(value) or value <= 0:
        errors.append(FieldError(name, message))
        return None
    return value


def parse_registration(form: Mapping[str, Any], clock: Clock = utcnow) -> User:
    """Validate the registration form and build the new User."""
    errors: list[FieldError] = []

    name = _text(form, "name")
    email = _text(form, "email").lower()
    phone = _text(form, "phone")
    whatsapp = _text(form, "whatsapp")
    password = str(form.get("password") or "")
    role = _text(form, "role") or UserRole.DEALER.value

    for field, value in (("name", name), ("email", email), ("phone", phone), ("password", password.strip())):
        if not value:
            errors.append(FieldError(field, REQUIRED))

    if email and not EMAIL_PATTERN.match(email):
        errors.append(FieldError("email", "Please enter a valid email"))
    if password.strip() and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(FieldError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters"))
    if role not in {r.value for r in UserRole}:
        errors.append(FieldError("role", "Role must be dealer or contractor"))

    if errors:
        raise ValidationError(errors)

    return User(
        name=name,
        email=email,
        password=password,
        phone=phone,
        whatsapp=whatsapp or phone,
        role=UserRole(role),
        created_at=clock(),
    )


def parse_login(form: Mapping[str, Any]) -> tuple[str, str]:
    """Validate the login form. Returns (email, password)."""
    email = _text(form, "email")
    password = str(form.get("password") or "")

    errors = [
        FieldError(field, REQUIRED)
        for field, value in (("email", email), ("password", password.strip()))
        if not value
    ]
    if errors:
        raise ValidationError(errors)
    return email, password


def parse_profile(form: Mapping[str, Any], role: UserRole | str) -> dict[str, Any]:
    """
    Validate the profile form for a user of role.

    Returns data for ProfileService.save_profile. An empty WhatsApp
    number means "same as phone".
    """
    role = UserRole(role)
    settings = get_settings()
    errors: list[FieldError] = []

    full_name = _text(form, "full_name")
    shop_name = _text(form, "shop_name")
    company_name = _text(form, "company_name")
    phone = _text(form, "phone")
    whatsapp = _text(form, "whatsapp")
    photo = _text(form, "profile_photo")
    address = Address(
        street=_text(form, "street"),
        area=_text(form, "area"),
        city=_text(form, "city"),
        state=_text(form, "state"),
        pincode=_text(form, "pincode"),
    )

    if not full_name:
        errors.append(FieldError("full_name", "Full name is required"))

    if not phone:
        errors.append(FieldError("phone", "Phone number is required"))
    elif not is_valid_phone(phone):
        errors.append(FieldError("phone", "Phone must be 10-12 digits"))

    if whatsapp and whatsapp != phone and not is_valid_phone(whatsapp):
        errors.append(FieldError("whatsapp", "WhatsApp must be 10-12 digits"))

    if role == UserRole.DEALER and not shop_name:
        errors.append(FieldError("shop_name", "Shop name is required for dealers"))

    for field in ("area", "city", "state"):
        if not getattr(address, field):
            errors.append(FieldError(field, f"{field.capitalize()} is required"))

    if not address.pincode:
        errors.append(FieldError("pincode", "Pincode is required"))
    elif not PINCODE_PATTERN.match(address.pincode):
        errors.append(FieldError("pincode", "Pincode must be 6 digits"))

    if photo and data_url_size(photo) > settings.PROFILE_PHOTO_MAX_BYTES:
        errors.append(FieldError("profile_photo", "Photo must be less than 500KB"))

    if errors:
        raise ValidationError(errors)

    return {
        "full_name": full_name,
        "shop_name": shop_name if role == UserRole.DEALER else None,
        "company_name": (company_name or None) if role == UserRole.CONTRACTOR else None,
        "phone": phone,
        "whatsapp": whatsapp or phone,
        "address": address,
        "profile_photo": photo or None,
    }


def parse_material(form: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate the material form.

    With partial=True only the fields present in form are checked and
    returned (used for field-by-field updates).
    """
    settings = get_settings()
    errors: list[FieldError] = []
    data: dict[str, Any] = {}

    def wanted(name: str) -> bool:
        return not partial or form.get(name) is not None

    if wanted("name"):
        name = _text(form, "name")
        if not name:
            errors.append(FieldError("name", "Material name is required"))
        data["name"] = name

    if wanted("price"):
        data["price"] = _positive_number(form, "price", "Enter a valid price", errors)

    if wanted("quantity"):
        data["quantity"] = _positive_number(form, "quantity", "Enter a valid quantity", errors)

    if wanted("unit"):
        unit = _text(form, "unit") or MaterialUnit.BAGS.value
        try:
            data["unit"] = MaterialUnit(unit)
        except ValueError:
            errors.append(FieldError("unit", f"Unknown unit: {unit}"))

    if wanted("description"):
        data["description"] = _text(form, "description")

    if wanted("image_url"):
        image_url = _text(form, "image_url")
        if image_url and data_url_size(image_url) > settings.MATERIAL_IMAGE_MAX_BYTES:
            errors.append(FieldError("image_url", "Image must be less than 2MB"))
        data["image_url"] = image_url or None

    if wanted("price_valid_until"):
        raw = _text(form, "price_valid_until")
        data["price_valid_until"] = None
        if raw:
            try:
                data["price_valid_until"] = date.fromisoformat(raw)
            except ValueError:
                errors.append(FieldError("price_valid_until", "Enter a valid date (YYYY-MM-DD)"))

    if errors:
        raise ValidationError(errors)

    return data
