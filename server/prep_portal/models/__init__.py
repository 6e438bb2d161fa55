"""
Models package initialization
Import all models here to ensure they are registered with SQLAlchemy
"""

from prep_portal.models.user import User, UserRole, ROLE_DASHBOARDS
from prep_portal.models.classroom import Classroom
from prep_portal.models.content import Test
from prep_portal.models.submission import Submission, SubmissionStatus

__all__ = [
    "User",
    "UserRole",
    "ROLE_DASHBOARDS",
    "Classroom",
    "Test",
    "Submission",
    "SubmissionStatus",
]
