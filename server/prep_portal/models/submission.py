from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prep_portal.database import Base
import enum
import uuid


class SubmissionStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Submission(Base):
    """A student's attempt at a test"""
    __tablename__ = "submissions"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    test_id = Column(String, ForeignKey("tests.id"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(String, nullable=True)
    answers = Column(JSON, nullable=False, default=list)  # One string per question
    evaluation = Column(JSON, nullable=True)  # {"results": [...], "overall_feedback": "..."}
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    test = relationship("Test", back_populates="submissions")

    @property
    def status(self) -> SubmissionStatus:
        if self.evaluation:
            return SubmissionStatus.COMPLETED
        return SubmissionStatus.IN_PROGRESS
