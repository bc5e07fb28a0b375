"""In-memory state machine for one participant taking one test.

Phases: loading -> (restore_decision | in_progress) -> submitting ->
completed, with error and cancelled as the other terminal phases.
"""
import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attempt_engine.core.config import settings
from attempt_engine.core.constants import TERMINAL_PHASES, QuestionTypeEnum, SessionPhaseEnum
from attempt_engine.core.exceptions import (
    AlreadyCompleted,
    EngineError,
    InvalidAnswer,
    InvalidSessionState,
    NotFound,
    TransientPersistenceFailure,
)
from attempt_engine.schemas.answer import (
    Answer,
    MultipleChoiceAnswer,
    SequenceAnswer,
    SingleChoiceAnswer,
    TextAnswer,
    answer_type,
    empty_answer,
    is_filled,
    parse_answer,
)
from attempt_engine.schemas.attempt import Attempt
from attempt_engine.schemas.catalog import Catalog, QuestionDefinition
from attempt_engine.schemas.score import ScoreResult
from attempt_engine.schemas.session import DraftState, QuestionProgress, SessionState
from attempt_engine.services.attempt_store import AttemptStore
from attempt_engine.services.catalog import catalog_accessor
from attempt_engine.services.submission import SubmissionCoordinator
from attempt_engine.services.timer import CountdownTimer, remaining_from_start

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_answer(question: QuestionDefinition, answer: Answer):
    """Raise InvalidAnswer unless ``answer`` fits ``question``."""
    if answer_type(answer) != question.question_type:
        raise InvalidAnswer(
            f"Question {question.id} expects a {question.question_type.value} answer.",
            {"question_id": question.id, "answer_type": answer.question_type},
        )

    known = set(question.option_ids)
    if isinstance(answer, SingleChoiceAnswer):
        chosen = set() if answer.option_id is None else {answer.option_id}
    elif isinstance(answer, MultipleChoiceAnswer):
        chosen = set(answer.option_ids)
    elif isinstance(answer, SequenceAnswer):
        chosen = set(answer.order)
        if chosen != known or len(answer.order) != len(known):
            raise InvalidAnswer(
                f"Order for question {question.id} must use every option exactly once.",
                {"question_id": question.id},
            )
    elif isinstance(answer, TextAnswer):
        chosen = set()
    else:
        raise TypeError(f"Unsupported answer: {answer!r}")

    foreign = chosen - known
    if foreign:
        raise InvalidAnswer(
            f"Options {sorted(foreign)} do not belong to question {question.id}.",
            {"question_id": question.id, "option_ids": sorted(foreign)},
        )


class QuestionDraft:
    def __init__(self, question: QuestionDefinition, answer: Answer, display_order: List[int], saved: bool = False):
        self.question = question
        self.answer = answer
        self.display_order = display_order
        self.dirty = False
        self.saved = saved
        self.marked = False

    @property
    def filled(self) -> bool:
        return is_filled(self.answer, len(self.question.options))

    @property
    def needs_save(self) -> bool:
        if self.dirty:
            # an answer that was cleared before it was ever stored has nothing to replace
            return self.filled or self.saved
        return not self.saved and self.question.question_type == QuestionTypeEnum.SEQUENCE


class TestSession:
    def __init__(
        self,
        *,
        attempt_id: int,
        test_id: int,
        event_id: int,
        user_id: int,
        session_factory: Callable[[], Session],
        store: Optional[AttemptStore] = None,
        coordinator: Optional[SubmissionCoordinator] = None,
        scheduler=None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
        resume_timer_from_start_time: Optional[bool] = None,
        tick_seconds: Optional[int] = None,
        on_finished: Optional[Callable[["TestSession"], None]] = None,
    ):
        self.attempt_id = attempt_id
        self.test_id = test_id
        self.event_id = event_id
        self.user_id = user_id

        self._session_factory = session_factory
        self.store = store or AttemptStore(session_factory)
        self.coordinator = coordinator or SubmissionCoordinator(session_factory, self.store, clock=clock)
        self._scheduler = scheduler
        self._rng = rng or random.Random(settings.SHUFFLE_SEED)
        self._clock = clock
        if resume_timer_from_start_time is None:
            resume_timer_from_start_time = settings.RESUME_TIMER_FROM_START_TIME
        self._resume_timer = resume_timer_from_start_time
        self._tick_seconds = tick_seconds or settings.TIMER_TICK_SECONDS
        self._on_finished = on_finished

        self.phase = SessionPhaseEnum.LOADING
        self.catalog: Optional[Catalog] = None
        self.attempt: Optional[Attempt] = None
        self.drafts: List[QuestionDraft] = []
        self.current_index = 0
        self.resume_index: Optional[int] = None
        self.error: Optional[str] = None
        self.result: Optional[ScoreResult] = None
        self.timer: Optional[CountdownTimer] = None
        self.expiry_task: Optional[asyncio.Task] = None
        self._restore_asked = False
        self._submit_lock = asyncio.Lock()

    # Loading

    def _read(self, fn):
        db = self._session_factory()
        try:
            return fn(db)
        finally:
            db.close()

    def _load_catalog(self) -> Catalog:
        return self._read(lambda db: catalog_accessor.load(db, self.test_id))

    def _load_attempt(self) -> Attempt:
        return self._read(
            lambda db: Attempt.model_validate(
                catalog_accessor.load_attempt(
                    db,
                    attempt_id=self.attempt_id,
                    user_id=self.user_id,
                    test_id=self.test_id,
                    event_id=self.event_id,
                )
            )
        )

    async def load(self) -> "TestSession":
        if self.phase != SessionPhaseEnum.LOADING:
            raise InvalidSessionState("Session is already loaded.", {"phase": self.phase.value})

        try:
            catalog, attempt, fragments = await asyncio.gather(
                asyncio.to_thread(self._load_catalog),
                asyncio.to_thread(self._load_attempt),
                self.store.load_fragments(self.attempt_id),
            )
            stored = self.store.answers_from_fragments(self.attempt_id, fragments, catalog)
        except (EngineError, SQLAlchemyError) as exc:
            message = exc.message if isinstance(exc, EngineError) else "Could not load the test."
            logger.error(f"Loading attempt {self.attempt_id} failed: {exc}")
            if self.phase == SessionPhaseEnum.LOADING:
                self._fail(message)
            return self

        if self.phase != SessionPhaseEnum.LOADING:
            # cancelled while loading
            return self

        self.catalog = catalog
        self.attempt = attempt
        self.drafts = [self._initial_draft(question, stored.get(question.id)) for question in catalog.questions]

        answered = [i for i, draft in enumerate(self.drafts) if draft.saved]
        if answered:
            self.resume_index = min(max(answered) + 1, len(self.drafts) - 1)
            self.phase = SessionPhaseEnum.RESTORE_DECISION
            logger.info(f"Attempt {self.attempt_id} has {len(answered)} saved answers; awaiting restore choice")
        else:
            self._enter_in_progress(0)
        return self

    def _shuffled(self, question: QuestionDefinition) -> List[int]:
        order = list(question.option_ids)
        self._rng.shuffle(order)
        return order

    def _fresh_draft(self, question: QuestionDefinition) -> QuestionDraft:
        if question.question_type == QuestionTypeEnum.SEQUENCE:
            order = self._shuffled(question)
            return QuestionDraft(question, SequenceAnswer(order=order), list(order))
        return QuestionDraft(question, empty_answer(question.question_type), list(question.option_ids))

    def _initial_draft(self, question: QuestionDefinition, answer: Optional[Answer]) -> QuestionDraft:
        if answer is None:
            return self._fresh_draft(question)
        try:
            check_answer(question, answer)
        except InvalidAnswer as exc:
            logger.warning(f"Ignoring stored answer for attempt {self.attempt_id}: {exc.message}")
            return self._fresh_draft(question)
        if not is_filled(answer, len(question.options)):
            return self._fresh_draft(question)

        if isinstance(answer, SequenceAnswer):
            display_order = list(answer.order)
        else:
            display_order = list(question.option_ids)
        return QuestionDraft(question, answer, display_order, saved=True)

    # Restore decision

    async def choose_restore(self, restore: bool):
        if self.phase != SessionPhaseEnum.RESTORE_DECISION or self._restore_asked:
            raise InvalidSessionState("No restore decision is pending.", {"phase": self.phase.value})

        self._restore_asked = True
        if restore:
            logger.info(f"Attempt {self.attempt_id} restored at question {self.resume_index}")
            self._enter_in_progress(self.resume_index or 0)
            return

        try:
            await self.store.clear_attempt(self.attempt_id)
        except TransientPersistenceFailure:
            # the choice stays open so the participant can retry
            self._restore_asked = False
            raise
        if self.phase != SessionPhaseEnum.RESTORE_DECISION:
            return
        self.drafts = [self._fresh_draft(draft.question) for draft in self.drafts]
        logger.info(f"Attempt {self.attempt_id} restarted from the first question")
        self._enter_in_progress(0)

    def _enter_in_progress(self, index: int):
        self.current_index = index
        self.phase = SessionPhaseEnum.IN_PROGRESS

        limit = self.catalog.test.time_limit_seconds
        if limit <= 0:
            return
        remaining = limit
        if self._resume_timer and self.attempt is not None:
            remaining = remaining_from_start(limit, self.attempt.start_time, self._clock())
        self.timer = CountdownTimer(
            job_id=f"attempt-{self.attempt_id}-countdown",
            remaining_seconds=remaining,
            on_expired=self._on_timer_expired,
            scheduler=self._scheduler,
            tick_seconds=self._tick_seconds,
        )
        self.timer.start()

    # Drafts and navigation

    def _require_in_progress(self):
        if self.phase == SessionPhaseEnum.COMPLETED:
            raise AlreadyCompleted(details={"attempt_id": self.attempt_id})
        if self.phase != SessionPhaseEnum.IN_PROGRESS:
            raise InvalidSessionState(
                f"Not allowed while the session is {self.phase.value}.",
                {"phase": self.phase.value},
            )

    def _draft_at(self, index: int) -> QuestionDraft:
        if index < 0 or index >= len(self.drafts):
            raise NotFound(f"No question at index {index}.", {"index": index, "question_count": len(self.drafts)})
        return self.drafts[index]

    @property
    def current_draft(self) -> QuestionDraft:
        return self.drafts[self.current_index]

    def set_draft(self, index: int, answer) -> DraftState:
        self._require_in_progress()
        draft = self._draft_at(index)
        try:
            answer = parse_answer(answer)
        except ValidationError as exc:
            raise InvalidAnswer("Malformed answer.", {"errors": [e["msg"] for e in exc.errors()]}) from exc
        check_answer(draft.question, answer)

        if answer != draft.answer:
            draft.answer = answer
            draft.dirty = True
            if isinstance(answer, SequenceAnswer):
                draft.display_order = list(answer.order)
        return self._draft_state(index)

    def toggle_mark(self, index: int) -> bool:
        self._require_in_progress()
        draft = self._draft_at(index)
        draft.marked = not draft.marked
        return draft.marked

    async def _save_draft(self, draft: QuestionDraft):
        if not draft.needs_save:
            return
        answer = draft.answer
        try:
            await self.store.save_answer(self.attempt_id, draft.question, answer)
        except TransientPersistenceFailure as exc:
            logger.warning(f"Saving question {draft.question.id} of attempt {self.attempt_id} failed: {exc.message}")
            return
        if draft.answer == answer:
            draft.dirty = False
        draft.saved = is_filled(answer, len(draft.question.options))

    async def _move_to(self, index: int):
        await self._save_draft(self.current_draft)
        if self.phase == SessionPhaseEnum.IN_PROGRESS:
            self.current_index = index

    async def next(self) -> Optional[ScoreResult]:
        """Save and advance; on the last question this submits instead."""
        self._require_in_progress()
        if self.current_index >= len(self.drafts) - 1:
            return await self.submit()
        await self._move_to(self.current_index + 1)
        return None

    async def previous(self):
        self._require_in_progress()
        await self._move_to(max(0, self.current_index - 1))

    async def go_to(self, index: int):
        self._require_in_progress()
        self._draft_at(index)
        await self._move_to(index)

    # Submission

    def pending_flush(self) -> List[QuestionDraft]:
        """Drafts written by the final flush: the current one always, others only when changed."""
        current = self.current_draft
        others = [d for d in self.drafts if d is not current and d.dirty and (d.filled or d.saved)]
        return [current] + others

    async def submit(self) -> ScoreResult:
        return await self._submit(trigger="participant")

    async def _submit(self, trigger: str) -> ScoreResult:
        if self.phase in (SessionPhaseEnum.SUBMITTING, SessionPhaseEnum.COMPLETED):
            raise AlreadyCompleted(details={"attempt_id": self.attempt_id})
        self._require_in_progress()

        async with self._submit_lock:
            if self.phase != SessionPhaseEnum.IN_PROGRESS:
                raise AlreadyCompleted(details={"attempt_id": self.attempt_id})
            self.phase = SessionPhaseEnum.SUBMITTING
            self._dispose_timer()
            logger.info(f"Submitting attempt {self.attempt_id} ({trigger})")

            try:
                result = await self.coordinator.submit(
                    attempt_id=self.attempt_id,
                    catalog=self.catalog,
                    drafts=[(d.question, d.answer) for d in self.pending_flush()],
                )
            except (EngineError, SQLAlchemyError) as exc:
                message = exc.message if isinstance(exc, EngineError) else "Could not submit the test."
                self._fail(message)
                raise

            if self.phase == SessionPhaseEnum.SUBMITTING:
                self.phase = SessionPhaseEnum.COMPLETED
            self.result = result
            for draft in self.drafts:
                draft.dirty = False
            self._finished()
            return result

    def _on_timer_expired(self):
        if self.phase != SessionPhaseEnum.IN_PROGRESS:
            logger.debug(f"Countdown expiry for attempt {self.attempt_id} dropped in phase {self.phase.value}")
            return
        self.expiry_task = asyncio.get_running_loop().create_task(self._submit_on_expiry())

    async def _submit_on_expiry(self) -> Optional[ScoreResult]:
        try:
            return await self._submit(trigger="time expired")
        except AlreadyCompleted:
            logger.debug(f"Attempt {self.attempt_id} was already submitted when time expired")
        except EngineError as exc:
            logger.error(f"Automatic submission of attempt {self.attempt_id} failed: {exc.message}")
        return None

    # Teardown

    def _dispose_timer(self):
        if self.timer is not None:
            self.timer.cancel()

    def _fail(self, message: str):
        self.error = message
        self.phase = SessionPhaseEnum.ERROR
        self._dispose_timer()
        self._finished()

    def _finished(self):
        if self._on_finished is not None:
            self._on_finished(self)

    def cancel(self):
        self._dispose_timer()
        if self.phase in TERMINAL_PHASES or self.phase == SessionPhaseEnum.SUBMITTING:
            return
        self.phase = SessionPhaseEnum.CANCELLED
        logger.info(f"Session for attempt {self.attempt_id} cancelled")

    # Views

    def _draft_state(self, index: int) -> DraftState:
        draft = self.drafts[index]
        return DraftState(
            index=index,
            question_id=draft.question.id,
            question_type=draft.question.question_type,
            answer=draft.answer,
            display_order=draft.display_order,
            filled=draft.filled,
            dirty=draft.dirty,
            saved=draft.saved,
            marked=draft.marked,
        )

    def progress(self) -> List[QuestionProgress]:
        return [
            QuestionProgress(index=i, question_id=d.question.id, answered=d.filled, marked=d.marked)
            for i, d in enumerate(self.drafts)
        ]

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self.timer.remaining_seconds if self.timer else None

    def state(self) -> SessionState:
        return SessionState(
            attempt_id=self.attempt_id,
            test_id=self.test_id,
            event_id=self.event_id,
            phase=self.phase,
            test_title=self.catalog.test.title if self.catalog else None,
            current_index=self.current_index,
            question_count=len(self.drafts),
            resume_index=self.resume_index,
            remaining_seconds=self.remaining_seconds,
            time_remaining=self.timer.formatted() if self.timer else None,
            drafts=[self._draft_state(i) for i in range(len(self.drafts))],
            error=self.error,
            result=self.result,
        )
