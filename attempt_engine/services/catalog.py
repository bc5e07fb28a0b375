import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from attempt_engine.core.constants import AttemptStatusEnum, QuestionTypeEnum
from attempt_engine.core.exceptions import AlreadyCompleted, NotFound, Unauthorized
from attempt_engine.crud.attempt import attempt as crud_attempt
from attempt_engine.crud.test import test as crud_test
from attempt_engine.models.attempt import UserTestAttempt
from attempt_engine.models.question import TestQuestion
from attempt_engine.schemas.catalog import Catalog, OptionDefinition, QuestionDefinition, TestDefinition

logger = logging.getLogger(__name__)


class CatalogAccessor:
    """Read-only access to tests, their questions and options.

    Nothing here writes; a loaded ``Catalog`` can be reused for the whole
    lifetime of an attempt.
    """

    def _question_definition(self, question: TestQuestion) -> QuestionDefinition:
        if question.question_type == QuestionTypeEnum.SEQUENCE:
            options = [
                OptionDefinition(id=item.id, text=item.answer_text, is_correct=False, order=item.answer_order)
                for item in question.sequence_answers
            ]
        else:
            options = [
                OptionDefinition(id=a.id, text=a.text, is_correct=bool(a.is_correct), order=a.order)
                for a in question.answers
            ]

        return QuestionDefinition(
            id=question.id,
            question=question.question or "",
            question_type=question.question_type,
            points=question.points,
            order=question.order,
            options=options,
        )

    def load_canonical_order(self, db: Session, question_id: int) -> List[int]:
        # Queried on its own so the answer key never depends on display order.
        return [item.id for item in crud_test.get_sequence_items(db, question_id=question_id)]

    def load(self, db: Session, test_id: int) -> Catalog:
        test = crud_test.get(db, id=test_id)
        if not test:
            raise NotFound("Test not found.", {"test_id": test_id})

        questions = crud_test.get_questions(db, test_id=test_id)
        if not questions:
            raise NotFound("Test has no questions.", {"test_id": test_id})

        definitions: List[QuestionDefinition] = []
        canonical_orders: Dict[int, List[int]] = {}
        for question in questions:
            definitions.append(self._question_definition(question))
            if question.question_type == QuestionTypeEnum.SEQUENCE:
                order = self.load_canonical_order(db, question.id)
                if order:
                    canonical_orders[question.id] = order
                else:
                    logger.warning(f"Sequence question {question.id} of test {test_id} has no canonical order")

        return Catalog(
            test=TestDefinition.model_validate(test),
            questions=definitions,
            canonical_orders=canonical_orders,
        )

    def load_attempt(self, db: Session, *, attempt_id: int, user_id: int, test_id: int, event_id: int) -> UserTestAttempt:
        attempt = crud_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFound("Test attempt not found.", {"attempt_id": attempt_id})

        if attempt.user_id != user_id:
            raise Unauthorized("This attempt belongs to another participant.", {"attempt_id": attempt_id})

        if attempt.test_id != test_id or attempt.event_id != event_id:
            raise NotFound(
                "Test attempt not found for this test and event.",
                {"attempt_id": attempt_id, "test_id": test_id, "event_id": event_id},
            )

        if attempt.status != AttemptStatusEnum.IN_PROGRESS:
            raise AlreadyCompleted(details={"attempt_id": attempt_id})

        return attempt


catalog_accessor = CatalogAccessor()
