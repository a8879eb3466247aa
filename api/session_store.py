import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from core.config import settings
from models.coaching import VoicePersonality
from models.tracking import TrackingConfig, TrackingSession

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """A tracking session plus the lock that serializes access to it."""
    session: TrackingSession
    personality: VoicePersonality = VoicePersonality.NEUTRAL
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionStore:
    """
    In-memory registry of tracking sessions keyed by id.

    A session is only touched while holding its entry lock, so handlers may
    run on the event loop or in the thread pool. The oldest session is
    dropped once `max_sessions` is reached.
    """

    def __init__(self, max_sessions: int = settings.MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._entries: "OrderedDict[str, SessionEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self, exercise=None, personality=VoicePersonality.NEUTRAL) -> str:
        session_id = str(uuid.uuid4())
        entry = SessionEntry(
            session=TrackingSession(exercise, TrackingConfig.from_settings(settings)),
            personality=VoicePersonality.parse(personality),
        )
        with self._lock:
            while len(self._entries) >= self.max_sessions:
                evicted_id, _ = self._entries.popitem(last=False)
                logger.warning(f"Session limit reached, dropping session {evicted_id}")
            self._entries[session_id] = entry
        logger.info(f"Created session {session_id} "
                    f"(exercise={entry.session.exercise.value if entry.session.exercise else None})")
        return session_id

    def get(self, session_id: str) -> Optional[SessionEntry]:
        with self._lock:
            return self._entries.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        with entry.lock:
            entry.session.set_active(False)
        logger.info(f"Deleted session {session_id}")
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Global store shared by the routers
session_store = SessionStore()
