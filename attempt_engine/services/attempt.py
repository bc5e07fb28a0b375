import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attempt_engine.core.exceptions import NotFound
from attempt_engine.crud.attempt import attempt as crud_attempt
from attempt_engine.crud.test import test as crud_test
from attempt_engine.models.attempt import UserTestAttempt
from attempt_engine.schemas.attempt import AttemptCreate

logger = logging.getLogger(__name__)


class AttemptService:

    def open_attempt(self, db: Session, *, test_id: int, event_id: int, user_id: int) -> UserTestAttempt:
        """Return the participant's in-progress attempt for (test, event), creating it on first engagement."""
        if not crud_test.get(db, id=test_id):
            raise NotFound("Test not found.", {"test_id": test_id})

        existing = crud_attempt.get_open_attempt(db, user_id=user_id, test_id=test_id, event_id=event_id)
        if existing:
            return existing

        attempt_in = AttemptCreate(
            user_id=user_id,
            test_id=test_id,
            event_id=event_id,
            start_time=datetime.now(timezone.utc),
        )
        try:
            new_attempt = crud_attempt.create(db, obj_in=attempt_in)
        except IntegrityError:
            # another request opened it between the lookup and the insert
            db.rollback()
            existing = crud_attempt.get_open_attempt(db, user_id=user_id, test_id=test_id, event_id=event_id)
            if not existing:
                raise
            return existing

        logger.info(f"Opened attempt {new_attempt.id} for user {user_id} on test {test_id}, event {event_id}")
        return new_attempt

    def get_participant_attempts(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[UserTestAttempt]:
        return crud_attempt.get_all_by_user(db, user_id=user_id, skip=skip, limit=limit)


attempt_service = AttemptService()
