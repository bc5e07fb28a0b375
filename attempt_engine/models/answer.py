from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from attempt_engine.core.database import Base

class TestAnswer(Base):
    """Option of a single_choice or multiple_choice question."""
    __tablename__ = "test_answers"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("test_questions.id"), nullable=False, index=True)
    text = Column(String, nullable=False, default="")
    is_correct = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)

    question = relationship("TestQuestion", back_populates="answers")
