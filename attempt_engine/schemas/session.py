from pydantic import BaseModel, Field
from typing import Optional, List

from attempt_engine.core.constants import QuestionTypeEnum, SessionPhaseEnum
from attempt_engine.schemas.answer import Answer
from attempt_engine.schemas.score import ScoreResult


class BeginSessionRequest(BaseModel):
    test_id: int
    event_id: int
    attempt_id: int

class RestoreChoice(BaseModel):
    restore: bool

class QuestionProgress(BaseModel):
    index: int
    question_id: int
    answered: bool
    marked: bool

class DraftState(BaseModel):
    index: int
    question_id: int
    question_type: QuestionTypeEnum
    answer: Answer
    display_order: List[int] = Field(default_factory=list, description="Option ids in the order shown to the participant")
    filled: bool
    dirty: bool
    saved: bool
    marked: bool

class SessionState(BaseModel):
    attempt_id: int
    test_id: int
    event_id: int
    phase: SessionPhaseEnum
    test_title: Optional[str] = None
    current_index: int = 0
    question_count: int = 0
    resume_index: Optional[int] = None
    remaining_seconds: Optional[int] = None
    time_remaining: Optional[str] = None
    drafts: List[DraftState] = []
    error: Optional[str] = None
    result: Optional[ScoreResult] = None

class DraftUpdate(BaseModel):
    answer: Answer
