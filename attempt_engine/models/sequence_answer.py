from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from attempt_engine.core.database import Base

class TestSequenceAnswer(Base):
    """Item of a sequence question; answer_order is its canonical position."""
    __tablename__ = "test_sequence_answers"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("test_questions.id"), nullable=False, index=True)
    answer_text = Column(String, nullable=False, default="")
    answer_order = Column(Integer, nullable=False)

    question = relationship("TestQuestion", back_populates="sequence_answers")
