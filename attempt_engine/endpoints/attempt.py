from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from attempt_engine.schemas.attempt import Attempt, AttemptOpen
from attempt_engine.schemas.response import APIResponse
from attempt_engine.services.attempt import attempt_service
from attempt_engine.utils import deps

router = APIRouter()


@router.post("", response_model=APIResponse[Attempt], status_code=status.HTTP_201_CREATED)
async def open_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_in: AttemptOpen,
    participant_id: int = Depends(deps.get_participant_id)
):
    attempt = attempt_service.open_attempt(
        db, test_id=attempt_in.test_id, event_id=attempt_in.event_id, user_id=participant_id
    )
    return APIResponse(message="Attempt ready", data=Attempt.model_validate(attempt))


@router.get("", response_model=APIResponse[List[Attempt]])
async def get_my_attempts(
    db: Session = Depends(deps.get_db),
    participant_id: int = Depends(deps.get_participant_id),
    skip: int = 0,
    limit: int = 100
):
    attempts = attempt_service.get_participant_attempts(db, user_id=participant_id, skip=skip, limit=limit)
    return APIResponse(message="Attempts retrieved successfully", data=[Attempt.model_validate(a) for a in attempts])
