import asyncio
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from langgraph.checkpoint.memory import MemorySaver

from app.core.config import settings
from app.core.logging import logger
from app.utils.errors import SessionLimitError, SessionNotFoundError


@dataclass
class SessionEntry:
    session_id: str
    last_accessed: float
    active_turns: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SurveySessionStore:
    """
    Session table for survey conversations.

    The graph state of every session lives in the shared checkpointer under
    its session id; this store only tracks liveness. Entries are refreshed on
    every access and removed by an externally scheduled sweep once idle for
    longer than the TTL. An entry inside ``turn()`` is never swept.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        self._checkpointer = MemorySaver()
        self._sessions: Dict[str, SessionEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def get_checkpointer(self) -> MemorySaver:
        return self._checkpointer

    def create(self, session_id: Optional[str] = None) -> str:
        if len(self) >= self.max_sessions:
            self.sweep()
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError()
            session_id = session_id or str(uuid4())
            self._sessions[session_id] = SessionEntry(session_id=session_id, last_accessed=self._clock())
        logger.info("Session created", session_id=session_id)
        return session_id

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def touch(self, session_id: str) -> SessionEntry:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                raise SessionNotFoundError()
            entry.last_accessed = self._clock()
            return entry

    def remove(self, session_id: str) -> bool:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        self._checkpointer.delete_thread(session_id)
        logger.info("Session removed", session_id=session_id)
        return True

    @asynccontextmanager
    async def turn(self, session_id: str):
        """Serialize work on one session and keep it alive while it runs."""
        entry = self.touch(session_id)
        with self._lock:
            entry.active_turns += 1
        try:
            async with entry.lock:
                yield entry
        finally:
            with self._lock:
                entry.active_turns -= 1
                entry.last_accessed = self._clock()

    def sweep(self, now: Optional[float] = None) -> List[str]:
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                session_id for session_id, entry in self._sessions.items()
                if entry.active_turns == 0 and now - entry.last_accessed > self.ttl_seconds
            ]
            for session_id in expired:
                del self._sessions[session_id]
        for session_id in expired:
            self._checkpointer.delete_thread(session_id)
            logger.info("Session expired and removed", session_id=session_id)
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


survey_session_store = SurveySessionStore(
    ttl_seconds=settings.SESSION_TTL_SECONDS,
    max_sessions=settings.MAX_SESSIONS
)
