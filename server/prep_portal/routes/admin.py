import logging
import secrets
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from prep_portal.config import settings
from prep_portal.database import get_db
from prep_portal.models import Classroom, User, UserRole
from prep_portal.schemas import (
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    ClassUpdateResponse,
    UserCreate,
    UserCreatedResponse,
    UserResponse,
)
from prep_portal.services.auth import hash_password, require_roles
from prep_portal.services.roster import (
    RosterError,
    delete_classroom,
    reconcile_roster,
    remove_user_everywhere,
)
from prep_portal.services.sse_manager import ADMIN_CHANNEL, event_stream, sse_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"], dependencies=[Depends(require_roles(UserRole.ADMIN))])


def _get_class_or_404(db: Session, class_id: str) -> Classroom:
    classroom = db.get(Classroom, class_id)
    if not classroom:
        raise HTTPException(status_code=404, detail="Class not found")
    return classroom


# =============================================================================
# Users
# =============================================================================

@router.get("/users", response_model=List[UserResponse])
async def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.created_at, User.email).all()


@router.post("/users", response_model=UserCreatedResponse, status_code=201)
async def create_user(request: UserCreate, db: Session = Depends(get_db)):
    """
    Create a user with a role. Without a password a temporary one is
    generated and returned once.
    """
    email = request.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail=f"User {email} already exists")

    temporary_password = None
    password = request.password
    if not password:
        password = temporary_password = secrets.token_urlsafe(9)
    elif len(password) < settings.min_password_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password should be at least {settings.min_password_length} characters long.",
        )

    user = User(email=email, role=request.role, hashed_password=hash_password(password), class_ids=[])
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("👤 Created %s %s", user.role.value, email)

    response = UserCreatedResponse(
        user=UserResponse.model_validate(user),
        message=f"{email} created with role {user.role.value}.",
        temporary_password=temporary_password,
    )
    await sse_manager.broadcast(ADMIN_CHANNEL, {"type": "user_created", "data": response.user.model_dump(mode="json")})
    return response


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles(UserRole.ADMIN)),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    remove_user_everywhere(db, user)
    await sse_manager.broadcast(ADMIN_CHANNEL, {"type": "user_deleted", "data": {"id": user_id}})
    return {"success": True}


# =============================================================================
# Classes
# =============================================================================

@router.get("/classes", response_model=List[ClassResponse])
async def list_classes(db: Session = Depends(get_db)):
    return db.query(Classroom).order_by(Classroom.created_at, Classroom.name).all()


@router.post("/classes", response_model=ClassResponse, status_code=201)
async def create_class(request: ClassCreate, db: Session = Depends(get_db)):
    name = request.name.strip()
    division = request.division.strip()
    if not name or not division:
        raise HTTPException(status_code=400, detail="Class name and division are required")

    classroom = Classroom(name=name, division=division, teacher_id=None, student_ids=[])
    db.add(classroom)
    db.commit()
    db.refresh(classroom)

    data = ClassResponse.model_validate(classroom)
    await sse_manager.broadcast(ADMIN_CHANNEL, {"type": "class_created", "data": data.model_dump()})
    return data


@router.put("/classes/{class_id}", response_model=ClassUpdateResponse)
async def update_class(class_id: str, request: ClassUpdate, db: Session = Depends(get_db)):
    """Assign the teacher and replace the student roster"""
    classroom = _get_class_or_404(db, class_id)

    try:
        diff = reconcile_roster(db, classroom, request.teacher_id, request.student_ids)
    except RosterError as e:
        raise HTTPException(status_code=400, detail=str(e))

    data = ClassResponse.model_validate(classroom)
    await sse_manager.broadcast(ADMIN_CHANNEL, {
        "type": "class_updated",
        "data": {"classroom": data.model_dump(), "diff": diff.model_dump()},
    })
    return ClassUpdateResponse(classroom=data, diff=diff)


@router.delete("/classes/{class_id}")
async def delete_class(class_id: str, db: Session = Depends(get_db)):
    classroom = _get_class_or_404(db, class_id)
    delete_classroom(db, classroom)
    await sse_manager.broadcast(ADMIN_CHANNEL, {"type": "class_deleted", "data": {"id": class_id}})
    return {"success": True}


@router.get("/events")
async def admin_events(request: Request):
    """SSE stream of user and class changes"""
    return event_stream(ADMIN_CHANNEL, request)
