"""
Draft persistence for in-progress matrix edits.

A draft is written on every change while the matrix has dirty cells and is
only surfaced by load() while it is younger than the TTL. Storage failures
are logged and never reach the caller.
"""

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError

from assignment_hub.core.config import settings

from .storage import KeyValueStorage
from .store import Matrix

logger = logging.getLogger(__name__)

DRAFT_STORAGE_KEY = "assignment_draft"
DRAFT_VERSION = 1


class Draft(BaseModel):
    version: int = DRAFT_VERSION
    matrix: Matrix
    timestamp: float


class DraftPersister:
    def __init__(
        self,
        storage: KeyValueStorage,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        key: str = DRAFT_STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.ttl_seconds = settings.draft_ttl_hours * 3600 if ttl_seconds is None else ttl_seconds
        self.clock = clock
        self.key = key

    def save(self, matrix: Matrix) -> None:
        try:
            draft = Draft(matrix=matrix, timestamp=self.clock())
            self.storage.set(self.key, draft.model_dump_json())
        except Exception:
            logger.exception("Error saving assignment draft")

    def load(self) -> Optional[Draft]:
        try:
            raw = self.storage.get(self.key)
        except Exception:
            logger.exception("Error reading assignment draft")
            return None
        if not raw:
            return None
        try:
            draft = Draft.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring unreadable assignment draft: %s", e)
            return None
        if draft.version != DRAFT_VERSION:
            logger.warning("Ignoring assignment draft with version %s", draft.version)
            return None
        if self.clock() - draft.timestamp >= self.ttl_seconds:
            return None
        return draft

    def has_draft(self) -> bool:
        return self.load() is not None

    def clear(self) -> None:
        try:
            self.storage.delete(self.key)
        except Exception:
            logger.exception("Error clearing assignment draft")
