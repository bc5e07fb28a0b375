import pytest

from attempt_engine.core.constants import QuestionTypeEnum
from attempt_engine.core.exceptions import AlreadyCompleted, NotFound, Unauthorized
from attempt_engine.crud.attempt import attempt as crud_attempt
from attempt_engine.schemas.attempt import AttemptCompletion
from attempt_engine.services.attempt import attempt_service
from attempt_engine.services.catalog import catalog_accessor
from tests.helpers.factories import multiple, sequence, single, text


def test_load_builds_ordered_definitions(make_test, db_session):
    test_id = make_test([single(points=2), multiple(), sequence(count=4), text(points=5)], time_limit=15, passing_score=60)

    catalog = catalog_accessor.load(db_session, test_id)

    assert [q.question_type for q in catalog.questions] == [
        QuestionTypeEnum.SINGLE_CHOICE,
        QuestionTypeEnum.MULTIPLE_CHOICE,
        QuestionTypeEnum.SEQUENCE,
        QuestionTypeEnum.TEXT,
    ]
    assert catalog.test.time_limit_seconds == 900
    assert catalog.test.passing_score == 60
    assert catalog.possible_points == 2 + 1 + 1 + 5
    assert catalog.has_text_questions
    assert len(catalog.questions[1].correct_option_ids) == 2


def test_sequence_canonical_order_comes_from_answer_order(make_test, db_session):
    test_id = make_test([sequence(count=4)])

    catalog = catalog_accessor.load(db_session, test_id)
    question = catalog.questions[0]
    canonical = catalog.canonical_orders[question.id]

    texts = {o.id: o.text for o in question.options}
    assert [texts[option_id] for option_id in canonical] == ["Step 1", "Step 2", "Step 3", "Step 4"]
    # ids were inserted in reverse, so the canonical order is not id order
    assert canonical != sorted(canonical)


def test_missing_or_empty_tests_are_not_found(make_test, db_session):
    with pytest.raises(NotFound):
        catalog_accessor.load(db_session, 98765)

    empty_id = make_test([])
    with pytest.raises(NotFound):
        catalog_accessor.load(db_session, empty_id)


def test_load_attempt_checks_owner_scope_and_status(make_test, make_attempt, db_session):
    test_id = make_test([single()])
    attempt_id = make_attempt(test_id, user_id=7, event_id=3)

    attempt = catalog_accessor.load_attempt(db_session, attempt_id=attempt_id, user_id=7, test_id=test_id, event_id=3)
    assert attempt.id == attempt_id

    with pytest.raises(Unauthorized):
        catalog_accessor.load_attempt(db_session, attempt_id=attempt_id, user_id=8, test_id=test_id, event_id=3)
    with pytest.raises(NotFound):
        catalog_accessor.load_attempt(db_session, attempt_id=attempt_id, user_id=7, test_id=test_id, event_id=4)
    with pytest.raises(NotFound):
        catalog_accessor.load_attempt(db_session, attempt_id=attempt_id + 100, user_id=7, test_id=test_id, event_id=3)

    completion = AttemptCompletion(score=0, passed=False, max_score=1, earned_points=0, end_time=attempt.start_time)
    crud_attempt.complete_if_in_progress(db_session, attempt_id=attempt_id, obj_in=completion)
    db_session.commit()
    with pytest.raises(AlreadyCompleted):
        catalog_accessor.load_attempt(db_session, attempt_id=attempt_id, user_id=7, test_id=test_id, event_id=3)


def test_open_attempt_reuses_the_in_progress_attempt(make_test, db_session):
    test_id = make_test([single()])

    first = attempt_service.open_attempt(db_session, test_id=test_id, event_id=1, user_id=5)
    again = attempt_service.open_attempt(db_session, test_id=test_id, event_id=1, user_id=5)
    other_event = attempt_service.open_attempt(db_session, test_id=test_id, event_id=2, user_id=5)

    assert first.id == again.id
    assert other_event.id != first.id
    assert {a.id for a in attempt_service.get_participant_attempts(db_session, user_id=5)} == {first.id, other_event.id}

    with pytest.raises(NotFound):
        attempt_service.open_attempt(db_session, test_id=test_id + 1, event_id=1, user_id=5)
