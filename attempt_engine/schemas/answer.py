"""Answer drafts as a tagged union keyed by ``question_type``.

Every consumer (scoring, the attempt store, the session) dispatches on the
concrete class and raises on anything it does not know.
"""
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from attempt_engine.core.constants import QuestionTypeEnum


class SingleChoiceAnswer(BaseModel):
    question_type: Literal["single_choice"] = "single_choice"
    option_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class MultipleChoiceAnswer(BaseModel):
    question_type: Literal["multiple_choice"] = "multiple_choice"
    option_ids: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("option_ids")
    @classmethod
    def unique_option_ids(cls, v: List[int]) -> List[int]:
        # a set in disguise; sorted so equal selections compare equal
        return sorted(set(v))


class SequenceAnswer(BaseModel):
    question_type: Literal["sequence"] = "sequence"
    order: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("order")
    @classmethod
    def no_repeated_items(cls, v: List[int]) -> List[int]:
        if len(v) != len(set(v)):
            raise ValueError("Sequence order must not repeat an option.")
        return v


class TextAnswer(BaseModel):
    question_type: Literal["text"] = "text"
    text: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


Answer = Annotated[
    Union[SingleChoiceAnswer, MultipleChoiceAnswer, SequenceAnswer, TextAnswer],
    Field(discriminator="question_type"),
]

answer_adapter = TypeAdapter(Answer)


def parse_answer(data) -> Answer:
    if isinstance(data, (SingleChoiceAnswer, MultipleChoiceAnswer, SequenceAnswer, TextAnswer)):
        return data
    return answer_adapter.validate_python(data)


def answer_type(answer: Answer) -> QuestionTypeEnum:
    return QuestionTypeEnum(answer.question_type)


def empty_answer(question_type: QuestionTypeEnum) -> Answer:
    if question_type == QuestionTypeEnum.SINGLE_CHOICE:
        return SingleChoiceAnswer()
    if question_type == QuestionTypeEnum.MULTIPLE_CHOICE:
        return MultipleChoiceAnswer()
    if question_type == QuestionTypeEnum.SEQUENCE:
        return SequenceAnswer()
    if question_type == QuestionTypeEnum.TEXT:
        return TextAnswer()
    raise ValueError(f"Unsupported question type: {question_type}")


def is_filled(answer: Answer, option_count: int) -> bool:
    if isinstance(answer, SingleChoiceAnswer):
        return answer.option_id is not None
    if isinstance(answer, MultipleChoiceAnswer):
        return len(answer.option_ids) > 0
    if isinstance(answer, SequenceAnswer):
        return len(answer.order) == option_count
    if isinstance(answer, TextAnswer):
        return bool(answer.text.strip())
    raise TypeError(f"Unsupported answer: {answer!r}")
