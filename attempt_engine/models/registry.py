# Imports every model so relationship strings resolve and metadata is complete.
from attempt_engine.models.test import Test
from attempt_engine.models.question import TestQuestion
from attempt_engine.models.answer import TestAnswer
from attempt_engine.models.sequence_answer import TestSequenceAnswer
from attempt_engine.models.attempt import UserTestAttempt
from attempt_engine.models.user_answer import UserTestAnswer

__all__ = [
    "Test",
    "TestQuestion",
    "TestAnswer",
    "TestSequenceAnswer",
    "UserTestAttempt",
    "UserTestAnswer",
]
