from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from attempt_engine.core.constants import AttemptStatusEnum

class AttemptBase(BaseModel):
    user_id: int
    test_id: int
    event_id: int
    status: AttemptStatusEnum = Field(default=AttemptStatusEnum.IN_PROGRESS)
    start_time: Optional[datetime] = None

class AttemptCreate(AttemptBase):
    pass

class AttemptCompletion(BaseModel):
    score: int = Field(ge=0, le=100)
    passed: Optional[bool] = None
    pending_review: bool = False
    max_score: int
    earned_points: int
    end_time: datetime

class Attempt(AttemptBase):
    id: int
    score: Optional[int] = None
    passed: Optional[bool] = None
    pending_review: bool = False
    max_score: Optional[int] = None
    earned_points: Optional[int] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AttemptOpen(BaseModel):
    test_id: int
    event_id: int
