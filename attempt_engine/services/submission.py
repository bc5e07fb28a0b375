import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attempt_engine.core.constants import AttemptStatusEnum
from attempt_engine.core.exceptions import AlreadyCompleted, NotFound, TransientPersistenceFailure
from attempt_engine.crud.attempt import attempt as crud_attempt
from attempt_engine.schemas.answer import Answer
from attempt_engine.schemas.attempt import AttemptCompletion
from attempt_engine.schemas.catalog import Catalog, QuestionDefinition
from attempt_engine.schemas.score import ScoreResult
from attempt_engine.services.attempt_store import AttemptStore
from attempt_engine.services.scoring import score_attempt

logger = logging.getLogger(__name__)


class SubmissionCoordinator:
    """Terminal transition of an attempt: flush, re-read, score, write once."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        store: Optional[AttemptStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self.store = store or AttemptStore(session_factory)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _require_in_progress(self, attempt_id: int):
        db = self._session_factory()
        try:
            attempt = crud_attempt.get(db, id=attempt_id)
            if not attempt:
                raise NotFound("Test attempt not found.", {"attempt_id": attempt_id})
            if attempt.status != AttemptStatusEnum.IN_PROGRESS:
                raise AlreadyCompleted(details={"attempt_id": attempt_id})
        except SQLAlchemyError as exc:
            raise TransientPersistenceFailure("Could not read the attempt.", {"error": str(exc)}) from exc
        finally:
            db.close()

    def _write_result(self, attempt_id: int, result: ScoreResult):
        completion = AttemptCompletion(
            score=result.score,
            passed=result.passed,
            pending_review=result.pending_review,
            max_score=result.possible_points,
            earned_points=result.earned_points,
            end_time=self._clock(),
        )
        db = self._session_factory()
        try:
            updated = crud_attempt.complete_if_in_progress(db, attempt_id=attempt_id, obj_in=completion)
            if not updated:
                db.rollback()
                raise AlreadyCompleted(details={"attempt_id": attempt_id})
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise TransientPersistenceFailure("Could not save the result.", {"error": str(exc)}) from exc
        finally:
            db.close()

    async def submit(
        self,
        *,
        attempt_id: int,
        catalog: Catalog,
        drafts: List[Tuple[QuestionDefinition, Answer]],
    ) -> ScoreResult:
        # Fails before any write when the attempt is already finished.
        await asyncio.to_thread(self._require_in_progress, attempt_id)

        for question, answer in drafts:
            await self.store.save_answer(attempt_id, question, answer)

        answers = await self.store.load_answers(attempt_id, catalog)
        result = score_attempt(catalog, answers)

        await asyncio.to_thread(self._write_result, attempt_id, result)
        logger.info(
            f"Attempt {attempt_id} completed: score={result.score} "
            f"({result.earned_points}/{result.possible_points}), pending_review={result.pending_review}, "
            f"passed={result.passed}"
        )
        return result
