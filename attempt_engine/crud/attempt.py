from sqlalchemy.orm import Session
from typing import List, Optional

from attempt_engine.core.constants import AttemptStatusEnum
from attempt_engine.crud.base import CRUDBase
from attempt_engine.models.attempt import UserTestAttempt
from attempt_engine.schemas.attempt import AttemptCreate, AttemptCompletion

class CRUDAttempt(CRUDBase[UserTestAttempt, AttemptCreate, AttemptCompletion]):

    def get_open_attempt(self, db: Session, *, user_id: int, test_id: int, event_id: int) -> Optional[UserTestAttempt]:
        return (
            db.query(UserTestAttempt)
            .filter(UserTestAttempt.user_id == user_id)
            .filter(UserTestAttempt.test_id == test_id)
            .filter(UserTestAttempt.event_id == event_id)
            .filter(UserTestAttempt.status == AttemptStatusEnum.IN_PROGRESS)
            .first()
        )

    def get_all_by_user(self, db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[UserTestAttempt]:
        return (
            db.query(UserTestAttempt)
            .filter(UserTestAttempt.user_id == user_id)
            .order_by(UserTestAttempt.start_time.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def complete_if_in_progress(self, db: Session, *, attempt_id: int, obj_in: AttemptCompletion) -> bool:
        """Conditional UPDATE; False when another writer already completed the attempt."""
        rowcount = (
            db.query(UserTestAttempt)
            .filter(UserTestAttempt.id == attempt_id)
            .filter(UserTestAttempt.status == AttemptStatusEnum.IN_PROGRESS)
            .update(
                {
                    UserTestAttempt.status: AttemptStatusEnum.COMPLETED,
                    UserTestAttempt.score: obj_in.score,
                    UserTestAttempt.passed: obj_in.passed,
                    UserTestAttempt.pending_review: obj_in.pending_review,
                    UserTestAttempt.max_score: obj_in.max_score,
                    UserTestAttempt.earned_points: obj_in.earned_points,
                    UserTestAttempt.end_time: obj_in.end_time,
                },
                synchronize_session=False,
            )
        )
        return rowcount == 1


attempt = CRUDAttempt(UserTestAttempt)
