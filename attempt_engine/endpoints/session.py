from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from attempt_engine.core.constants import SessionPhaseEnum
from attempt_engine.schemas.response import APIResponse
from attempt_engine.schemas.score import ScoreResult
from attempt_engine.schemas.session import BeginSessionRequest, DraftState, DraftUpdate, QuestionProgress, RestoreChoice, SessionState
from attempt_engine.services.engine import TestEngine
from attempt_engine.utils import deps

router = APIRouter()


class MarkState(BaseModel):
    index: int
    marked: bool


@router.post("", response_model=APIResponse[SessionState], status_code=status.HTTP_201_CREATED)
async def begin_session(
    *,
    request_in: BeginSessionRequest,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = await engine.begin_session(
        test_id=request_in.test_id,
        event_id=request_in.event_id,
        attempt_id=request_in.attempt_id,
        user_id=participant_id,
    )
    if session.phase == SessionPhaseEnum.RESTORE_DECISION:
        message = "Saved answers found; choose whether to restore them"
    elif session.phase == SessionPhaseEnum.ERROR:
        message = "Session could not be loaded"
    else:
        message = "Session started"
    return APIResponse(message=message, data=session.state())


@router.get("/{attempt_id}", response_model=APIResponse[SessionState])
async def get_session(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    return APIResponse(message="Session retrieved successfully", data=session.state())


@router.get("/{attempt_id}/progress", response_model=APIResponse[List[QuestionProgress]])
async def get_progress(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    return APIResponse(message="Progress retrieved successfully", data=session.progress())


@router.post("/{attempt_id}/restore", response_model=APIResponse[SessionState])
async def choose_restore(
    *,
    attempt_id: int,
    choice: RestoreChoice,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    await session.choose_restore(choice.restore)
    message = "Saved answers restored" if choice.restore else "Test restarted"
    return APIResponse(message=message, data=session.state())


@router.put("/{attempt_id}/drafts/{index}", response_model=APIResponse[DraftState])
async def set_draft(
    *,
    attempt_id: int,
    index: int,
    draft_in: DraftUpdate,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    draft = session.set_draft(index, draft_in.answer)
    return APIResponse(message="Answer updated", data=draft)


@router.post("/{attempt_id}/next", response_model=APIResponse[SessionState])
async def next_question(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    result: Optional[ScoreResult] = await session.next()
    message = "Test submitted" if result is not None else "Moved to next question"
    return APIResponse(message=message, data=session.state())


@router.post("/{attempt_id}/previous", response_model=APIResponse[SessionState])
async def previous_question(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    await session.previous()
    return APIResponse(message="Moved to previous question", data=session.state())


@router.post("/{attempt_id}/goto/{index}", response_model=APIResponse[SessionState])
async def go_to_question(
    *,
    attempt_id: int,
    index: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    await session.go_to(index)
    return APIResponse(message=f"Moved to question {index + 1}", data=session.state())


@router.post("/{attempt_id}/marks/{index}", response_model=APIResponse[MarkState])
async def toggle_mark(
    *,
    attempt_id: int,
    index: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    marked = session.toggle_mark(index)
    return APIResponse(message="Mark updated", data=MarkState(index=index, marked=marked))


@router.post("/{attempt_id}/submit", response_model=APIResponse[ScoreResult])
async def submit_session(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.get_session(attempt_id, participant_id)
    result = await session.submit()
    message = "Test submitted; awaiting review of written answers" if result.pending_review else "Test submitted"
    return APIResponse(message=message, data=result)


@router.delete("/{attempt_id}", response_model=APIResponse[SessionState])
async def cancel_session(
    *,
    attempt_id: int,
    engine: TestEngine = Depends(deps.get_engine),
    participant_id: int = Depends(deps.get_participant_id)
):
    session = engine.end_session(attempt_id, participant_id)
    return APIResponse(message="Session cancelled", data=session.state())
