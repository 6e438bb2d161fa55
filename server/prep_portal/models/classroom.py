from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from prep_portal.database import Base
import uuid


class Classroom(Base):
    """A class (batch) of students with at most one teacher"""
    __tablename__ = "classes"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String, nullable=False)
    division = Column(String, nullable=False)
    teacher_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    student_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
