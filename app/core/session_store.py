"""
Basic-Auth credential store, one entry per browser session.

Holds the Base64 `username:password` used for every backend call and the
last-known user profile returned by the backend login. Nothing here is
persisted; a restart logs everyone out. Entries idle for longer than
idle_ttl seconds are forgotten.
"""

import base64
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def encode_credentials(username: str, password: str) -> str:
    """Return Base64 of `username:password` for the Authorization: Basic header."""
    raw = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


@dataclass
class StoredSession:
    """Credential and profile for one logged-in browser."""

    credentials: str
    user: Dict[str, Any] = field(default_factory=dict)
    last_seen: float = 0.0


class CredentialStore:
    """
    In-memory map session_id -> StoredSession.

    **Input (request):**
        - idle_ttl: seconds without a lookup before an entry expires (None = never).
        - clock: monotonic time source.
    """

    def __init__(self, idle_ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = threading.Lock()
        self._idle_ttl = idle_ttl
        self._clock = clock

    def _prune(self, now: float) -> None:
        if self._idle_ttl is None:
            return
        expired = [sid for sid, s in self._sessions.items() if now - s.last_seen > self._idle_ttl]
        for sid in expired:
            del self._sessions[sid]
            logger.info("Credentials for session %s expired after inactivity", sid[:8])

    def store(self, session_id: str, credentials: str, user: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._sessions[session_id] = StoredSession(credentials=credentials, user=user or {}, last_seen=now)

    def get(self, session_id: Optional[str]) -> Optional[StoredSession]:
        if not session_id:
            return None
        with self._lock:
            now = self._clock()
            self._prune(now)
            stored = self._sessions.get(session_id)
            if stored is not None:
                stored.last_seen = now
            return stored

    def get_credentials(self, session_id: Optional[str]) -> Optional[str]:
        stored = self.get(session_id)
        return stored.credentials if stored else None

    def clear(self, session_id: Optional[str]) -> None:
        """Forget credential and profile. Safe to call for unknown sessions."""
        if not session_id:
            return
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Cleared credentials for session %s", session_id[:8])

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
