from typing import Optional

from fastapi import Header

from attempt_engine.core.constants import PARTICIPANT_HEADER
from attempt_engine.core.database import SessionLocal
from attempt_engine.core.exceptions import Unauthorized
from attempt_engine.services.engine import TestEngine, test_engine


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_engine() -> TestEngine:
    return test_engine


def get_participant_id(participant_id: Optional[str] = Header(None, alias=PARTICIPANT_HEADER)) -> int:
    """Participant identity as forwarded by the upstream gateway."""
    if not participant_id:
        raise Unauthorized(f"Missing {PARTICIPANT_HEADER} header.")
    try:
        return int(participant_id)
    except ValueError:
        raise Unauthorized(f"Invalid {PARTICIPANT_HEADER} header.", {"value": participant_id})
