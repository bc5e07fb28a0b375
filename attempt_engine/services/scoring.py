"""Pure scoring of a final answer set.

No I/O and no randomness: the same (catalog, answers) pair always produces
the same ``ScoreResult``. Points are all-or-nothing per question.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Tuple

from attempt_engine.core.constants import QuestionOutcomeEnum, QuestionTypeEnum
from attempt_engine.core.exceptions import ScoringInconsistency
from attempt_engine.schemas.answer import (
    Answer,
    MultipleChoiceAnswer,
    SequenceAnswer,
    SingleChoiceAnswer,
    TextAnswer,
)
from attempt_engine.schemas.catalog import Catalog, QuestionDefinition
from attempt_engine.schemas.score import QuestionScore, ScoreResult

logger = logging.getLogger(__name__)

Outcome = Tuple[bool, QuestionOutcomeEnum]


def percentage(earned: int, possible: int) -> int:
    """round(100 * earned / possible), half-up; 0 for a test worth nothing."""
    if possible <= 0:
        return 0
    value = (Decimal(100) * Decimal(earned)) / Decimal(possible)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _expect(answer: Optional[Answer], kind: type, question: QuestionDefinition):
    if answer is None:
        return None
    if not isinstance(answer, kind):
        raise ScoringInconsistency(
            f"Answer for question {question.id} does not match its type {question.question_type.value}.",
            {"question_id": question.id},
        )
    return answer


def score_single_choice(question: QuestionDefinition, answer: Optional[SingleChoiceAnswer]) -> Outcome:
    if answer is None or answer.option_id is None:
        return False, QuestionOutcomeEnum.UNANSWERED
    option = question.option(answer.option_id)
    if option is None:
        raise ScoringInconsistency(
            f"Option {answer.option_id} does not belong to question {question.id}.",
            {"question_id": question.id, "option_id": answer.option_id},
        )
    if option.is_correct:
        return True, QuestionOutcomeEnum.CORRECT
    return False, QuestionOutcomeEnum.INCORRECT


def score_multiple_choice(question: QuestionDefinition, answer: Optional[MultipleChoiceAnswer]) -> Outcome:
    correct = question.correct_option_ids
    if not correct:
        # Both subset checks pass vacuously here; never award points for it.
        raise ScoringInconsistency(
            f"Multiple choice question {question.id} has no correct options.",
            {"question_id": question.id},
        )
    if answer is None or not answer.option_ids:
        return False, QuestionOutcomeEnum.UNANSWERED
    selected = set(answer.option_ids)
    if selected == correct:
        return True, QuestionOutcomeEnum.CORRECT
    return False, QuestionOutcomeEnum.INCORRECT


def score_sequence(
    question: QuestionDefinition, answer: Optional[SequenceAnswer], canonical: Optional[list]
) -> Outcome:
    if not canonical:
        raise ScoringInconsistency(
            f"Canonical order missing for sequence question {question.id}.",
            {"question_id": question.id},
        )
    if answer is None or len(answer.order) != len(canonical):
        return False, QuestionOutcomeEnum.UNANSWERED
    if list(answer.order) == list(canonical):
        return True, QuestionOutcomeEnum.CORRECT
    return False, QuestionOutcomeEnum.INCORRECT


def score_question(
    question: QuestionDefinition, answer: Optional[Answer], canonical: Optional[list] = None
) -> QuestionScore:
    try:
        if question.question_type == QuestionTypeEnum.SINGLE_CHOICE:
            earned, outcome = score_single_choice(question, _expect(answer, SingleChoiceAnswer, question))
        elif question.question_type == QuestionTypeEnum.MULTIPLE_CHOICE:
            earned, outcome = score_multiple_choice(question, _expect(answer, MultipleChoiceAnswer, question))
        elif question.question_type == QuestionTypeEnum.SEQUENCE:
            earned, outcome = score_sequence(question, _expect(answer, SequenceAnswer, question), canonical)
        elif question.question_type == QuestionTypeEnum.TEXT:
            _expect(answer, TextAnswer, question)
            earned, outcome = False, QuestionOutcomeEnum.PENDING_REVIEW
        else:
            raise ValueError(f"Unsupported question type: {question.question_type}")
    except ScoringInconsistency as exc:
        logger.warning(f"Data integrity: {exc.message} Scoring question as 0.")
        earned, outcome = False, QuestionOutcomeEnum.INCONSISTENT

    return QuestionScore(
        question_id=question.id,
        question_type=question.question_type,
        points_possible=question.points,
        points_awarded=question.points if earned else 0,
        outcome=outcome,
    )


def is_passed(score: int, passing_score: int) -> bool:
    if passing_score <= 0:
        return True
    return score >= passing_score


def score_attempt(catalog: Catalog, answers: Mapping[int, Answer]) -> ScoreResult:
    """Score every question of ``catalog`` against ``answers`` (keyed by question id).

    Text questions count toward the possible points but never earn any; a
    test containing one comes back ``pending_review`` with ``passed=None``.
    """
    breakdown = [
        score_question(question, answers.get(question.id), catalog.canonical_orders.get(question.id))
        for question in catalog.questions
    ]

    earned = sum(q.points_awarded for q in breakdown)
    possible = sum(q.points_possible for q in breakdown)
    score = percentage(earned, possible)
    pending_review = catalog.has_text_questions

    return ScoreResult(
        earned_points=earned,
        possible_points=possible,
        score=score,
        pending_review=pending_review,
        passed=None if pending_review else is_passed(score, catalog.test.passing_score),
        questions=breakdown,
    )
