from pydantic import BaseModel, ConfigDict
from typing import Optional, List

from attempt_engine.core.constants import QuestionOutcomeEnum, QuestionTypeEnum


class QuestionScore(BaseModel):
    question_id: int
    question_type: QuestionTypeEnum
    points_possible: int
    points_awarded: int
    outcome: QuestionOutcomeEnum

    model_config = ConfigDict(frozen=True)


class ScoreResult(BaseModel):
    earned_points: int
    possible_points: int
    score: int # percentage, 0-100
    pending_review: bool = False
    passed: Optional[bool] = None # None while text answers await review
    questions: List[QuestionScore] = []

    model_config = ConfigDict(frozen=True)
