from enum import Enum


class TestTypeEnum(str, Enum):
    ENTRY = "entry"
    FINAL = "final"
    ANNUAL = "annual"

class QuestionTypeEnum(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    SEQUENCE = "sequence"
    TEXT = "text"

class AttemptStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class SessionPhaseEnum(str, Enum):
    LOADING = "loading"
    RESTORE_DECISION = "restore_decision"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

class QuestionOutcomeEnum(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"
    PENDING_REVIEW = "pending_review"
    INCONSISTENT = "inconsistent"


TERMINAL_PHASES = frozenset({
    SessionPhaseEnum.COMPLETED,
    SessionPhaseEnum.ERROR,
    SessionPhaseEnum.CANCELLED,
})

PARTICIPANT_HEADER = "X-Participant-Id"
