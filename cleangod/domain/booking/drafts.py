"""Draft store - per-tab hand-off of the booking wizard state"""

import logging
from contextlib import contextmanager

from pydantic import ValidationError

from ...config import DRAFT_TTL_SECONDS, SUBMIT_LOCK_TTL_SECONDS
from ...storage import KeyValueStore
from .wizard import NotStarted, wizard_state_adapter

logger = logging.getLogger(__name__)


class SubmissionInFlight(Exception):
    """A submission for this draft is already being processed"""


class DraftStore:
    """Wizard state for one browsing session, stored as a single JSON record"""

    def __init__(self, storage: KeyValueStore, session_id: str, ttl: int = DRAFT_TTL_SECONDS):
        self.storage = storage
        self.session_id = session_id
        self.ttl = ttl

    @property
    def key(self) -> str:
        return f"booking_draft:{self.session_id}"

    @property
    def lock_key(self) -> str:
        return f"booking_submit_lock:{self.session_id}"

    def load(self):
        raw = self.storage.get(self.key)
        if not raw:
            return NotStarted()
        try:
            return wizard_state_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Discarding unreadable booking draft for session {self.session_id}: {e}")
            self.storage.delete(self.key)
            return NotStarted()

    def save(self, state) -> None:
        if isinstance(state, NotStarted):
            self.clear()
            return
        self.storage.set(self.key, wizard_state_adapter.dump_json(state).decode(), self.ttl)

    def clear(self) -> None:
        self.storage.delete(self.key)

    def exists(self) -> bool:
        return self.storage.get(self.key) is not None

    @contextmanager
    def submission_guard(self):
        """Reject a second submission while the first one is still running"""
        if not self.storage.set_if_absent(self.lock_key, "1", SUBMIT_LOCK_TTL_SECONDS):
            raise SubmissionInFlight("Booking submission already in progress")
        try:
            yield
        finally:
            self.storage.delete(self.lock_key)
