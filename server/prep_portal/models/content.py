from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prep_portal.database import Base
import uuid


class Test(Base):
    """Tests created by teachers, optionally assigned to a class"""
    __tablename__ = "tests"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String, nullable=False)
    class_id = Column(String, ForeignKey("classes.id"), nullable=True, index=True)  # None for drafts
    questions = Column(JSON, nullable=False)  # [{"question", "type", "options"?, "answer"?}]
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_draft = Column(Boolean, nullable=False, default=False)
    document_base64 = Column(Text, nullable=True)  # Source document as data URI

    # Relationships
    submissions = relationship("Submission", back_populates="test")
