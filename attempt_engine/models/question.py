from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attempt_engine.core.database import Base
from attempt_engine.core.constants import QuestionTypeEnum

class TestQuestion(Base):
    __tablename__ = "test_questions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=False, index=True)
    question = Column(String, nullable=False, default="")
    question_type = Column(Enum(QuestionTypeEnum), nullable=False)
    points = Column(Integer, nullable=False, default=1)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    test = relationship("Test", back_populates="questions")
    answers = relationship(
        "TestAnswer",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="TestAnswer.order",
    )
    sequence_answers = relationship(
        "TestSequenceAnswer",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="TestSequenceAnswer.answer_order",
    )
