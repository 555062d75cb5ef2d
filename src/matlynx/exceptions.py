"""
Domain exceptions.

Auth errors surface to the user as a single banner message; validation
errors surface per form field; DeserializationError means the store holds
data that can't be read back and is not recovered.
"""

from dataclasses import dataclass


class MatlynxError(Exception):
    """Base class for all MATLYNX errors."""


class AuthError(MatlynxError):
    """Registration or login failed."""

    message = "Authentication failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class EmailTaken(AuthError):
    message = "Email already registered"


class UserNotFound(AuthError):
    message = "User not found"


class WrongPassword(AuthError):
    message = "Incorrect password"


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    reason: str


class ValidationError(MatlynxError):
    """
    One or more form fields are invalid.

    All field errors of a form are collected before this is raised, and
    it is always raised before anything is written.
    """

    def __init__(self, errors: list[FieldError]):
        if not errors:
            raise ValueError("ValidationError requires at least one field error")
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.reason}" for e in self.errors))

    @property
    def field(self) -> str:
        return self.errors[0].field

    @property
    def reason(self) -> str:
        return self.errors[0].reason

    def as_dict(self) -> dict[str, str]:
        """Field -> reason, first reason wins per field."""
        out: dict[str, str] = {}
        for error in self.errors:
            out.setdefault(error.field, error.reason)
        return out


class DeserializationError(MatlynxError):
    """Stored data under a key is malformed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed data under '{key}': {reason}")
