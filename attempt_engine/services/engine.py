import logging
import random
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from attempt_engine.core.config import settings
from attempt_engine.core.database import SessionLocal
from attempt_engine.core.exceptions import NotFound, Unauthorized
from attempt_engine.core.scheduler import scheduler as app_scheduler
from attempt_engine.services.attempt_store import AttemptStore
from attempt_engine.services.session import TestSession, utcnow
from attempt_engine.services.submission import SubmissionCoordinator

logger = logging.getLogger(__name__)


class TestEngine:
    """Live sessions of this process, one per attempt.

    A session that completes or fails leaves the live map and is parked among
    the most recently finished ones, so its final state stays readable until
    newer sessions push it out.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        scheduler=None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
        finished_retention: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self._scheduler = scheduler
        self._rng = rng
        self._clock = clock
        if finished_retention is None:
            finished_retention = settings.FINISHED_SESSION_RETENTION
        self._finished_retention = finished_retention
        self.store = AttemptStore(session_factory)
        self.coordinator = SubmissionCoordinator(session_factory, self.store, clock=clock)
        self._sessions: Dict[int, TestSession] = {}
        self._finished: "OrderedDict[int, TestSession]" = OrderedDict()

    @property
    def live_attempt_ids(self):
        return list(self._sessions)

    @property
    def finished_attempt_ids(self):
        return list(self._finished)

    def _retire(self, session: TestSession):
        if self._sessions.get(session.attempt_id) is not session:
            return
        del self._sessions[session.attempt_id]
        self._finished[session.attempt_id] = session
        self._finished.move_to_end(session.attempt_id)
        while len(self._finished) > self._finished_retention:
            evicted, _ = self._finished.popitem(last=False)
            logger.debug(f"Evicted finished session for attempt {evicted}")
        logger.info(f"Session for attempt {session.attempt_id} finished in phase {session.phase.value}")

    async def begin_session(self, test_id: int, event_id: int, attempt_id: int, user_id: int) -> TestSession:
        self._finished.pop(attempt_id, None)
        previous = self._sessions.pop(attempt_id, None)
        if previous is not None:
            logger.info(f"Replacing live session for attempt {attempt_id}")
            previous.cancel()

        session = TestSession(
            attempt_id=attempt_id,
            test_id=test_id,
            event_id=event_id,
            user_id=user_id,
            session_factory=self._session_factory,
            store=self.store,
            coordinator=self.coordinator,
            scheduler=self._scheduler,
            rng=self._rng,
            clock=self._clock,
            on_finished=self._retire,
        )
        self._sessions[attempt_id] = session
        await session.load()
        return session

    def get_session(self, attempt_id: int, user_id: Optional[int] = None) -> TestSession:
        session = self._sessions.get(attempt_id) or self._finished.get(attempt_id)
        if session is None:
            raise NotFound("No active session for this attempt.", {"attempt_id": attempt_id})
        if user_id is not None and session.user_id != user_id:
            raise Unauthorized("This attempt belongs to another participant.", {"attempt_id": attempt_id})
        return session

    def end_session(self, attempt_id: int, user_id: Optional[int] = None) -> TestSession:
        session = self.get_session(attempt_id, user_id)
        session.cancel()
        self._sessions.pop(attempt_id, None)
        self._finished.pop(attempt_id, None)
        return session

    def shutdown(self):
        for session in list(self._sessions.values()):
            session.cancel()
        self._sessions.clear()
        self._finished.clear()


test_engine = TestEngine(SessionLocal, scheduler=app_scheduler)
