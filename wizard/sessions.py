import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple
from uuid import uuid4

from wizard.container import CourseFormContainer
from wizard.store import CourseStore

logger = logging.getLogger(__name__)


class WizardSessionStore:
    """In-memory wizard sessions keyed by an opaque session id (one process only).

    Sessions idle longer than ttl seconds expire, and at most max_sessions are
    held; the least recently used ones are evicted first.
    """

    def __init__(
        self,
        *,
        redirect_delay: float = 1.5,
        ttl: float = 1800.0,
        max_sessions: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sessions: "OrderedDict[str, Tuple[CourseFormContainer, float]]" = OrderedDict()
        self.redirect_delay = redirect_delay
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def _prune(self) -> None:
        cutoff = self._clock() - self.ttl
        expired = [sid for sid, (_, touched) in self._sessions.items() if touched < cutoff]
        for sid in expired:
            del self._sessions[sid]
        while len(self._sessions) >= self.max_sessions:
            self._sessions.popitem(last=False)
        if expired:
            logger.info("Expired %d idle wizard sessions", len(expired))

    def create(
        self,
        store: CourseStore,
        *,
        course_id: Optional[str] = None,
        initial_step: int = 0,
    ) -> Tuple[str, CourseFormContainer]:
        self._prune()
        session_id = uuid4().hex
        container = CourseFormContainer(
            store,
            course_id=course_id,
            initial_step=initial_step,
            redirect_delay=self.redirect_delay,
        )
        self._sessions[session_id] = (container, self._clock())
        return session_id, container

    def get(self, session_id: str) -> Optional[CourseFormContainer]:
        """The session's container, refreshing its idle timer. Expired sessions are gone."""
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        container, touched = entry
        now = self._clock()
        if now - touched > self.ttl:
            del self._sessions[session_id]
            return None
        self._sessions[session_id] = (container, now)
        self._sessions.move_to_end(session_id)
        return container

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
