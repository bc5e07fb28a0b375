"""Error taxonomy of the test-attempt engine.

Services raise these instead of ``HTTPException`` so the engine stays usable
outside FastAPI; ``attempt_engine.middleware.exceptions`` maps them to HTTP.
"""
from typing import Any, Dict, Optional


class EngineError(Exception):
    status_code: int = 500
    code: str = "ENGINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(EngineError):
    status_code = 404
    code = "NOT_FOUND"


class AlreadyCompleted(EngineError):
    status_code = 409
    code = "ALREADY_COMPLETED"

    def __init__(self, message: str = "Test already finished.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class Unauthorized(EngineError):
    status_code = 403
    code = "UNAUTHORIZED"


class TransientPersistenceFailure(EngineError):
    status_code = 503
    code = "PERSISTENCE_FAILURE"


class ScoringInconsistency(EngineError):
    """Data-integrity problem found while scoring; the question scores 0."""
    status_code = 500
    code = "SCORING_INCONSISTENCY"


class InvalidSessionState(EngineError):
    status_code = 409
    code = "INVALID_SESSION_STATE"


class InvalidAnswer(EngineError):
    status_code = 422
    code = "INVALID_ANSWER"
