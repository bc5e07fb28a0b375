from sqlalchemy.orm import Session
from typing import Any, Dict, List

from attempt_engine.crud.base import CRUDBase
from attempt_engine.models.user_answer import UserTestAnswer

class CRUDUserAnswer(CRUDBase[UserTestAnswer, None, None]):

    def get_all_by_attempt(self, db: Session, *, attempt_id: int) -> List[UserTestAnswer]:
        return (
            db.query(UserTestAnswer)
            .filter(UserTestAnswer.attempt_id == attempt_id)
            .order_by(UserTestAnswer.question_id, UserTestAnswer.id)
            .all()
        )

    def get_by_attempt_and_question(self, db: Session, *, attempt_id: int, question_id: int) -> List[UserTestAnswer]:
        return (
            db.query(UserTestAnswer)
            .filter(UserTestAnswer.attempt_id == attempt_id)
            .filter(UserTestAnswer.question_id == question_id)
            .order_by(UserTestAnswer.id)
            .all()
        )

    def delete_by_attempt_and_question(self, db: Session, *, attempt_id: int, question_id: int) -> int:
        return (
            db.query(UserTestAnswer)
            .filter(UserTestAnswer.attempt_id == attempt_id)
            .filter(UserTestAnswer.question_id == question_id)
            .delete(synchronize_session=False)
        )

    def delete_by_attempt(self, db: Session, *, attempt_id: int) -> int:
        return (
            db.query(UserTestAnswer)
            .filter(UserTestAnswer.attempt_id == attempt_id)
            .delete(synchronize_session=False)
        )

    def create_many(self, db: Session, *, rows: List[Dict[str, Any]]) -> List[UserTestAnswer]:
        db_objs = [UserTestAnswer(**row) for row in rows]
        db.add_all(db_objs)
        db.flush()
        return db_objs


user_answer = CRUDUserAnswer(UserTestAnswer)
