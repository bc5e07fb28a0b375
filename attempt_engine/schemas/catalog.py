from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Set

from attempt_engine.core.constants import QuestionTypeEnum, TestTypeEnum


class OptionDefinition(BaseModel):
    id: int
    text: str = ""
    is_correct: bool = False
    order: int = 0

    model_config = ConfigDict(from_attributes=True, frozen=True)


class QuestionDefinition(BaseModel):
    id: int
    question: str = ""
    question_type: QuestionTypeEnum
    points: int = Field(default=1, ge=0)
    order: int = 0
    options: List[OptionDefinition] = []

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def option_ids(self) -> List[int]:
        return [option.id for option in self.options]

    @property
    def correct_option_ids(self) -> Set[int]:
        return {option.id for option in self.options if option.is_correct}

    def option(self, option_id: int) -> Optional[OptionDefinition]:
        return next((o for o in self.options if o.id == option_id), None)


class TestDefinition(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    type: TestTypeEnum = TestTypeEnum.ENTRY
    passing_score: int = 0
    time_limit: int = 0

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def time_limit_seconds(self) -> int:
        return max(0, self.time_limit) * 60


class Catalog(BaseModel):
    """Read-only snapshot of a test used for one attempt.

    ``canonical_orders`` maps a sequence question id to its correct option
    order. It is kept apart from ``QuestionDefinition.options`` so the
    displayed (shuffled) order can never be mistaken for the answer key.
    """
    test: TestDefinition
    questions: List[QuestionDefinition]
    canonical_orders: Dict[int, List[int]] = {}

    model_config = ConfigDict(frozen=True)

    def question_by_id(self, question_id: int) -> Optional[QuestionDefinition]:
        return next((q for q in self.questions if q.id == question_id), None)

    @property
    def has_text_questions(self) -> bool:
        return any(q.question_type == QuestionTypeEnum.TEXT for q in self.questions)

    @property
    def possible_points(self) -> int:
        return sum(q.points for q in self.questions)
