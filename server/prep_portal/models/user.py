from sqlalchemy import Column, String, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from prep_portal.database import Base
import enum
import uuid


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


# Landing page for each role
ROLE_DASHBOARDS = {
    UserRole.ADMIN: "/admin",
    UserRole.TEACHER: "/teacher",
    UserRole.STUDENT: "/student",
}


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    hashed_password = Column(String, nullable=False)
    class_ids = Column(JSON, nullable=False, default=list)  # Students only
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def dashboard(self) -> str:
        return ROLE_DASHBOARDS.get(self.role, "/login")

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
