from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attempt_engine.core.database import Base
from attempt_engine.core.constants import TestTypeEnum

class Test(Base):
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(String, nullable=True)
    type = Column(Enum(TestTypeEnum), nullable=False, default=TestTypeEnum.ENTRY)
    time_limit = Column(Integer, nullable=False, default=0) # minutes, 0 = unlimited
    passing_score = Column(Integer, nullable=False, default=0) # percent, 0 = no threshold
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    questions = relationship(
        "TestQuestion",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestQuestion.order",
    )
    attempts = relationship("UserTestAttempt", back_populates="test", cascade="all, delete-orphan")
