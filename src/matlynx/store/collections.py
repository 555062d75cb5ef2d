"""
Collection store.

Flat collections of records, each serialized as one JSON array under a
fixed key, plus single-record pointers (the session). Every read loads
the whole collection and every write replaces it in a single backend
call. There is no indexing, locking or versioning: the last writer wins.
"""

import json
import logging
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from matlynx.contracts.records import Record
from matlynx.exceptions import DeserializationError
from matlynx.store.backends import KeyValueBackend

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

USERS_KEY = "matlynx_users"
CURRENT_USER_KEY = "matlynx_current_user"
PROFILES_KEY = "matlynx_profiles"
MATERIALS_KEY = "matlynx_materials"


class Store:
    """Whole-collection read/write over a key-value backend."""

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend

    def _load(self, key: str) -> Any:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON under {key}: {e}")
            raise DeserializationError(key, f"invalid JSON ({e.msg})") from e

    # --- Collections ---

    def read(self, key: str) -> list[dict[str, Any]]:
        """Read a whole collection; [] when the key is absent."""
        data = self._load(key)
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            logger.error(f"Collection under {key} is not an array of objects")
            raise DeserializationError(key, "expected an array of objects")
        return data

    def write(self, key: str, records: list[dict[str, Any]]) -> None:
        """Replace a whole collection."""
        self.backend.set(key, json.dumps(records))

    # --- Single records ---

    def read_record(self, key: str) -> dict[str, Any] | None:
        """Read a single-record pointer; None when absent."""
        data = self._load(key)
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.error(f"Record under {key} is not an object")
            raise DeserializationError(key, "expected an object")
        return data

    def write_record(self, key: str, record: dict[str, Any]) -> None:
        self.backend.set(key, json.dumps(record))

    def remove(self, key: str) -> None:
        self.backend.delete(key)

    # --- Typed helpers ---

    def read_models(self, key: str, model: type[R]) -> list[R]:
        """Read a collection and parse every record as model."""
        return [self.parse(key, model, item) for item in self.read(key)]

    def write_models(self, key: str, models: list[R]) -> None:
        self.write(key, [m.to_record() for m in models])

    def read_model(self, key: str, model: type[R]) -> R | None:
        data = self.read_record(key)
        if data is None:
            return None
        return self.parse(key, model, data)

    @staticmethod
    def parse(key: str, model: type[R], data: dict[str, Any]) -> R:
        try:
            return model.from_record(data)
        except PydanticValidationError as e:
            logger.error(f"Record under {key} does not match {model.__name__}")
            raise DeserializationError(key, f"invalid {model.__name__} record") from e
