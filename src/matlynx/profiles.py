"""
Profile Completeness Engine

A profile is complete when it has a name and a valid phone, the area,
city, state and pincode of its address, and (for dealers only) a shop
name. Completeness is always computed from the record's fields and is
never read back from the stored flag.
"""

import logging
import re
from typing import Any

from matlynx.clock import Clock, next_stamp, utcnow
from matlynx.contracts.records import Address, Profile, User
from matlynx.contracts.types import UserRole
from matlynx.store.collections import PROFILES_KEY, Store

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")

# Set from the session user, never from caller data
_PROTECTED_FIELDS = frozenset({"user_id", "role", "is_complete", "created_at", "updated_at"})


def is_valid_phone(phone: str) -> bool:
    """10 to 12 digits, ignoring any formatting characters."""
    digits = _NON_DIGITS.sub("", phone or "")
    return 10 <= len(digits) <= 12


def is_profile_complete(profile: Profile | None) -> bool:
    if profile is None:
        return False

    has_basic_info = bool(profile.full_name and profile.phone and is_valid_phone(profile.phone))
    address = profile.address
    has_address = bool(address.area and address.city and address.state and address.pincode)
    has_dealer_info = profile.role == UserRole.CONTRACTOR or bool(profile.shop_name)

    return has_basic_info and has_address and has_dealer_info


class ProfileService:
    """Profiles collection, keyed by userId (case-insensitive)."""

    def __init__(self, store: Store, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    def list_profiles(self) -> list[Profile]:
        return self.store.read_models(PROFILES_KEY, Profile)

    def get_profile(self, user_id: str) -> Profile | None:
        wanted = user_id.lower()
        for profile in self.list_profiles():
            if profile.user_id.lower() == wanted:
                return profile.model_copy(update={"is_complete": is_profile_complete(profile)})
        return None

    def has_complete_profile(self, user_id: str) -> bool:
        return is_profile_complete(self.get_profile(user_id))

    def save_profile(self, user: User, data: dict[str, Any]) -> Profile:
        """
        Create or update the profile of user.

        Fields in data are merged over the existing profile (the address
        is replaced as a whole when given). userId and role come from the
        user; createdAt is kept from the existing profile; updatedAt is
        stamped; isComplete is recomputed and any value in data is ignored.
        """
        records = self.store.read(PROFILES_KEY)
        wanted = user.email.lower()
        index = next(
            (i for i, r in enumerate(records) if str(r.get("userId", "")).lower() == wanted),
            None,
        )
        existing = self.store.parse(PROFILES_KEY, Profile, records[index]) if index is not None else None

        merged: dict[str, Any] = existing.model_dump() if existing else {}
        changes = Profile.field_keys(data)
        merged.update({k: v for k, v in changes.items() if k not in _PROTECTED_FIELDS})

        address = merged.get("address")
        if isinstance(address, Address):
            merged["address"] = address.model_dump()
        if not merged.get("whatsapp"):
            merged["whatsapp"] = merged.get("phone") or None

        now = next_stamp(self.clock, existing.updated_at if existing else None)
        merged.update(
            user_id=user.email,
            role=user.role,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        profile = Profile.model_validate(merged)
        profile.is_complete = is_profile_complete(profile)

        if index is not None:
            records[index] = profile.to_record()
        else:
            records.append(profile.to_record())
        self.store.write(PROFILES_KEY, records)

        logger.info(
            "Profile saved",
            extra={"user_id": user.email, "is_complete": profile.is_complete},
        )
        return profile

    def delete_profile(self, user_id: str) -> None:
        wanted = user_id.lower()
        records = self.store.read(PROFILES_KEY)
        kept = [r for r in records if str(r.get("userId", "")).lower() != wanted]
        self.store.write(PROFILES_KEY, kept)

    def draft_for(self, user: User) -> dict[str, str]:
        """
        Form values for the profile setup page.

        Prefilled from the saved profile when there is one, otherwise from
        the User record.
        """
        profile = self.get_profile(user.email)
        if profile is not None:
            return {
                "full_name": profile.full_name,
                "shop_name": profile.shop_name or "",
                "company_name": profile.company_name or "",
                "phone": profile.phone,
                "whatsapp": profile.whatsapp or "",
                "street": profile.address.street,
                "area": profile.address.area,
                "city": profile.address.city,
                "state": profile.address.state,
                "pincode": profile.address.pincode,
                "profile_photo": profile.profile_photo or "",
            }
        return {
            "full_name": user.name,
            "shop_name": "",
            "company_name": "",
            "phone": user.phone,
            "whatsapp": user.whatsapp or "",
            "street": "",
            "area": "",
            "city": "",
            "state": "",
            "pincode": "",
            "profile_photo": "",
        }
