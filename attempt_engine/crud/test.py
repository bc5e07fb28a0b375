from sqlalchemy.orm import Session, selectinload
from typing import List

from attempt_engine.crud.base import CRUDBase
from attempt_engine.models.test import Test
from attempt_engine.models.question import TestQuestion
from attempt_engine.models.answer import TestAnswer  # noqa: F401
from attempt_engine.models.sequence_answer import TestSequenceAnswer


class CRUDTest(CRUDBase[Test, None, None]):

    def get_questions(self, db: Session, *, test_id: int) -> List[TestQuestion]:
        return (
            db.query(TestQuestion)
            .options(
                selectinload(TestQuestion.answers),
                selectinload(TestQuestion.sequence_answers),
            )
            .filter(TestQuestion.test_id == test_id)
            .order_by(TestQuestion.order, TestQuestion.id)
            .all()
        )

    def get_sequence_items(self, db: Session, *, question_id: int) -> List[TestSequenceAnswer]:
        return (
            db.query(TestSequenceAnswer)
            .filter(TestSequenceAnswer.question_id == question_id)
            .order_by(TestSequenceAnswer.answer_order, TestSequenceAnswer.id)
            .all()
        )


test = CRUDTest(Test)
