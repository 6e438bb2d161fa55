from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from prep_portal.config import settings
from prep_portal.database import get_db
from prep_portal.models import User
from prep_portal.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    TokenResponse,
)
from prep_portal.services.auth import (
    authenticate,
    create_access_token,
    get_current_user,
    hash_password,
)

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    user = authenticate(db, request.email, request.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return TokenResponse(
        access_token=create_access_token(user),
        user=ProfileResponse.model_validate(user),
    )


@router.get("/me", response_model=ProfileResponse)
async def me(user: User = Depends(get_current_user)):
    """Current profile, including the dashboard path for the role"""
    return user


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.new_password != request.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if len(request.new_password) < settings.min_password_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password should be at least {settings.min_password_length} characters long.",
        )

    user.hashed_password = hash_password(request.new_password)
    db.commit()
    return {"success": True, "message": "Your password has been updated."}
