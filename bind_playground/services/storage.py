"""
Durable key-value slots backed by the state_slots table.

`load` never raises: a missing or unreadable slot is reported as None and the
caller falls back to its default. `save` raises StorageError so callers can
decide whether a failed write matters; the session layers log and carry on.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bind_playground.models.state import StateSlot

logger = logging.getLogger(__name__)

BUNDLE_SLOT = "bundle"
KEYS_SLOT = "keys"
ISSUER_SLOT = "issuer"


class StorageError(Exception):
    """Raised when a slot cannot be written."""


class KeyValueStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def load(self, key: str) -> Any | None:
        try:
            with self._session_factory() as db:
                slot = db.get(StateSlot, key)
                return None if slot is None else slot.value
        except SQLAlchemyError as exc:
            logger.warning("Could not read slot '%s': %s", key, exc)
            return None

    def save(self, key: str, value: Any) -> None:
        try:
            with self._session_factory() as db:
                slot = db.get(StateSlot, key)
                if slot is None:
                    db.add(StateSlot(key=key, value=value))
                else:
                    slot.value = value
                db.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not write slot '{key}': {exc}") from exc
