from datetime import datetime, timezone

import pytest

from attempt_engine.core.constants import AttemptStatusEnum
from attempt_engine.core.exceptions import AlreadyCompleted, NotFound
from attempt_engine.crud.attempt import attempt as crud_attempt
from attempt_engine.crud.user_answer import user_answer as crud_user_answer
from attempt_engine.schemas.answer import MultipleChoiceAnswer, SequenceAnswer, SingleChoiceAnswer
from attempt_engine.schemas.attempt import AttemptCompletion
from attempt_engine.services.attempt_store import AttemptStore
from attempt_engine.services.submission import SubmissionCoordinator
from tests.helpers.factories import multiple, sequence, single

FIXED_NOW = datetime(2026, 6, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def coordinator(session_factory):
    return SubmissionCoordinator(session_factory, AttemptStore(session_factory), clock=lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_scores_what_is_persisted(coordinator, make_test, make_attempt, load_catalog, db_session):
    test_id = make_test([single(points=2, correct=1), multiple(points=3, correct=(0, 2)), sequence(points=5, count=3)], passing_score=50)
    attempt_id = make_attempt(test_id)
    catalog = load_catalog(test_id)
    single_q, multiple_q, sequence_q = catalog.questions

    # saved earlier in the session
    await coordinator.store.save_answer(attempt_id, single_q, SingleChoiceAnswer(option_id=single_q.option_ids[1]))
    await coordinator.store.save_answer(
        attempt_id, multiple_q, MultipleChoiceAnswer(option_ids=[multiple_q.option_ids[0], multiple_q.option_ids[2]])
    )

    result = await coordinator.submit(
        attempt_id=attempt_id,
        catalog=catalog,
        drafts=[(sequence_q, SequenceAnswer(order=catalog.canonical_orders[sequence_q.id]))],
    )

    assert result.earned_points == 10
    assert result.score == 100
    assert result.passed is True

    db_session.expire_all()
    attempt = crud_attempt.get(db_session, id=attempt_id)
    assert attempt.status == AttemptStatusEnum.COMPLETED
    assert attempt.score == 100
    assert attempt.end_time.replace(tzinfo=timezone.utc) == FIXED_NOW


@pytest.mark.asyncio
async def test_flush_of_a_cleared_draft_removes_the_stale_answer(coordinator, make_test, make_attempt, load_catalog):
    test_id = make_test([single(correct=0), single(correct=0)])
    attempt_id = make_attempt(test_id)
    catalog = load_catalog(test_id)
    first = catalog.questions[0]
    await coordinator.store.save_answer(attempt_id, first, SingleChoiceAnswer(option_id=first.option_ids[0]))

    result = await coordinator.submit(
        attempt_id=attempt_id, catalog=catalog, drafts=[(first, SingleChoiceAnswer(option_id=None))]
    )

    assert result.earned_points == 0
    assert result.score == 0


@pytest.mark.asyncio
async def test_resubmission_writes_nothing(coordinator, make_test, make_attempt, load_catalog, db_session):
    test_id = make_test([single(correct=0)])
    attempt_id = make_attempt(test_id)
    catalog = load_catalog(test_id)
    question = catalog.questions[0]

    await coordinator.submit(
        attempt_id=attempt_id, catalog=catalog, drafts=[(question, SingleChoiceAnswer(option_id=question.option_ids[0]))]
    )

    with pytest.raises(AlreadyCompleted):
        await coordinator.submit(
            attempt_id=attempt_id, catalog=catalog, drafts=[(question, SingleChoiceAnswer(option_id=question.option_ids[1]))]
        )

    db_session.expire_all()
    rows = crud_user_answer.get_all_by_attempt(db_session, attempt_id=attempt_id)
    assert [r.answer_id for r in rows] == [question.option_ids[0]]
    assert crud_attempt.get(db_session, id=attempt_id).score == 100


def test_conditional_update_refuses_completed_attempts(make_test, make_attempt, db_session):
    test_id = make_test([single()])
    attempt_id = make_attempt(test_id)
    completion = AttemptCompletion(score=10, passed=False, max_score=1, earned_points=0, end_time=FIXED_NOW)

    assert crud_attempt.complete_if_in_progress(db_session, attempt_id=attempt_id, obj_in=completion) is True
    db_session.commit()
    assert crud_attempt.complete_if_in_progress(db_session, attempt_id=attempt_id, obj_in=completion) is False


@pytest.mark.asyncio
async def test_unknown_attempt_is_not_found(coordinator, make_test, load_catalog):
    catalog = load_catalog(make_test([single()]))
    with pytest.raises(NotFound):
        await coordinator.submit(attempt_id=424242, catalog=catalog, drafts=[])
