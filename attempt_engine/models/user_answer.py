from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attempt_engine.core.database import Base

class UserTestAnswer(Base):
    """One row per answer fragment.

    single_choice/text/sequence write one row per question, multiple_choice
    writes one row per selected option.
    """
    __tablename__ = "user_test_answers"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("user_test_attempts.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("test_questions.id"), nullable=False, index=True)
    answer_id = Column(Integer, nullable=True) # option id for choice questions
    text_answer = Column(String, nullable=True)
    user_order = Column(JSON, nullable=True) # list of sequence option ids
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attempt = relationship("UserTestAttempt", back_populates="user_answers")
