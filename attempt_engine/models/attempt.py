from sqlalchemy import Column, Integer, DateTime, ForeignKey, Boolean, Enum, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attempt_engine.core.database import Base
from attempt_engine.core.constants import AttemptStatusEnum

class UserTestAttempt(Base):
    __tablename__ = "user_test_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    status = Column(Enum(AttemptStatusEnum), nullable=False, default=AttemptStatusEnum.IN_PROGRESS)
    score = Column(Integer, nullable=True) # 0-100, set once on completion
    passed = Column(Boolean, nullable=True) # NULL while pending review
    pending_review = Column(Boolean, nullable=False, default=False)
    max_score = Column(Integer, nullable=True)
    earned_points = Column(Integer, nullable=True)
    start_time = Column(DateTime(timezone=True), server_default=func.now())
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    test = relationship("Test", back_populates="attempts")
    user_answers = relationship("UserTestAnswer", back_populates="attempt", cascade="all, delete-orphan")

    __table_args__ = (
        # one mutable attempt per (participant, test, event)
        Index(
            "uq_user_test_attempts_open",
            "user_id", "test_id", "event_id",
            unique=True,
            sqlite_where=text("status = 'IN_PROGRESS'"),
            postgresql_where=text("status = 'IN_PROGRESS'"),
        ),
    )
