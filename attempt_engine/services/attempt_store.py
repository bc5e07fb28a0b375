"""Durable per-question answer storage for an attempt.

Concurrency policy: last write wins. ``save_answer`` replaces every row of
one (attempt, question) pair inside a single transaction, so a later save
for the same question supersedes any earlier one, including one still in
flight. Draft state in the session stays authoritative until submission.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attempt_engine.core.constants import QuestionTypeEnum
from attempt_engine.core.exceptions import TransientPersistenceFailure
from attempt_engine.crud.user_answer import user_answer as crud_user_answer
from attempt_engine.schemas.answer import (
    Answer,
    MultipleChoiceAnswer,
    SequenceAnswer,
    SingleChoiceAnswer,
    TextAnswer,
    is_filled,
)
from attempt_engine.schemas.catalog import Catalog, QuestionDefinition

logger = logging.getLogger(__name__)


def answer_to_rows(attempt_id: int, question: QuestionDefinition, answer: Answer) -> List[Dict[str, Any]]:
    """Row representation of a draft; empty when there is nothing to persist."""
    if not is_filled(answer, len(question.options)):
        return []

    base = {"attempt_id": attempt_id, "question_id": question.id}
    if isinstance(answer, SingleChoiceAnswer):
        return [{**base, "answer_id": answer.option_id}]
    if isinstance(answer, MultipleChoiceAnswer):
        return [{**base, "answer_id": option_id} for option_id in answer.option_ids]
    if isinstance(answer, SequenceAnswer):
        return [{**base, "user_order": list(answer.order)}]
    if isinstance(answer, TextAnswer):
        return [{**base, "text_answer": answer.text}]
    raise TypeError(f"Unsupported answer: {answer!r}")


class StoredFragment(NamedTuple):
    """Detached copy of one user_test_answers row."""
    answer_id: Optional[int]
    text_answer: Optional[str]
    user_order: Optional[List[int]]


def rows_to_answer(question: QuestionDefinition, rows: List[StoredFragment]) -> Answer:
    question_type = question.question_type
    if question_type == QuestionTypeEnum.SINGLE_CHOICE:
        option_id = next((r.answer_id for r in rows if r.answer_id is not None), None)
        return SingleChoiceAnswer(option_id=option_id)
    if question_type == QuestionTypeEnum.MULTIPLE_CHOICE:
        return MultipleChoiceAnswer(option_ids=[r.answer_id for r in rows if r.answer_id is not None])
    if question_type == QuestionTypeEnum.SEQUENCE:
        stored = next((r.user_order for r in rows if r.user_order), None) or []
        order = [int(option_id) for option_id in stored]
        if len(order) != len(set(order)):
            logger.warning(f"Stored order for question {question.id} repeats options; treating as unanswered")
            order = []
        return SequenceAnswer(order=order)
    if question_type == QuestionTypeEnum.TEXT:
        text = next((r.text_answer for r in rows if r.text_answer), None) or ""
        return TextAnswer(text=text)
    raise ValueError(f"Unsupported question type: {question_type}")


class AttemptStore:
    """Persists answer drafts through short-lived database sessions.

    The blocking SQLAlchemy work runs in a worker thread so a countdown tick
    on the event loop is never held up by I/O.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _run(self, operation: str, fn: Callable[[Session], Any]) -> Any:
        db = self._session_factory()
        try:
            result = fn(db)
            db.commit()
            return result
        except SQLAlchemyError as exc:
            db.rollback()
            raise TransientPersistenceFailure(f"Could not {operation}.", {"error": str(exc)}) from exc
        finally:
            db.close()

    def _save_answer(self, attempt_id: int, question: QuestionDefinition, answer: Answer) -> int:
        rows = answer_to_rows(attempt_id, question, answer)

        def replace(db: Session) -> int:
            crud_user_answer.delete_by_attempt_and_question(db, attempt_id=attempt_id, question_id=question.id)
            if rows:
                crud_user_answer.create_many(db, rows=rows)
            return len(rows)

        return self._run("save answer", replace)

    def _clear_attempt(self, attempt_id: int) -> int:
        return self._run(
            "clear answers",
            lambda db: crud_user_answer.delete_by_attempt(db, attempt_id=attempt_id),
        )

    def _load_fragments(self, attempt_id: int) -> Dict[int, List[StoredFragment]]:
        def load(db: Session) -> Dict[int, List[StoredFragment]]:
            grouped: Dict[int, List[StoredFragment]] = defaultdict(list)
            for row in crud_user_answer.get_all_by_attempt(db, attempt_id=attempt_id):
                grouped[row.question_id].append(
                    StoredFragment(answer_id=row.answer_id, text_answer=row.text_answer, user_order=row.user_order)
                )
            return dict(grouped)

        return self._run("load answers", load)

    def answers_from_fragments(
        self, attempt_id: int, fragments: Dict[int, List[StoredFragment]], catalog: Catalog
    ) -> Dict[int, Answer]:
        answers: Dict[int, Answer] = {}
        for question_id, rows in fragments.items():
            question = catalog.question_by_id(question_id)
            if question is None:
                logger.warning(f"Attempt {attempt_id} has answers for unknown question {question_id}")
                continue
            answers[question_id] = rows_to_answer(question, rows)
        return answers

    async def save_answer(self, attempt_id: int, question: QuestionDefinition, answer: Answer) -> int:
        """Replace the stored answer for one question; returns rows written."""
        written = await asyncio.to_thread(self._save_answer, attempt_id, question, answer)
        logger.debug(f"Saved answer for attempt {attempt_id}, question {question.id} ({written} rows)")
        return written

    async def clear_attempt(self, attempt_id: int) -> int:
        deleted = await asyncio.to_thread(self._clear_attempt, attempt_id)
        logger.info(f"Cleared {deleted} answer rows for attempt {attempt_id}")
        return deleted

    async def load_fragments(self, attempt_id: int) -> Dict[int, List[StoredFragment]]:
        return await asyncio.to_thread(self._load_fragments, attempt_id)

    async def load_answers(self, attempt_id: int, catalog: Catalog) -> Dict[int, Answer]:
        fragments = await self.load_fragments(attempt_id)
        return self.answers_from_fragments(attempt_id, fragments, catalog)
