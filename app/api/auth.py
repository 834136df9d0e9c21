from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, create_session_token, get_current_user, hash_password, verify_password
from app.core.config import settings
from app.db.session import get_db
from app.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("app.auth")

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)


class PasswordChangeRequest(BaseModel):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)


class ProfileRead(BaseModel):
    id: int
    name: str
    username: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> dict:
    username = payload.username.strip()
    if not username:
        raise HTTPException(status_code=400, detail="Username cannot be blank")
    if db.execute(select(User.id).where(User.username == username)).first():
        raise HTTPException(status_code=409, detail="Username already taken")
    h, s = hash_password(payload.password)
    user = User(name=payload.name.strip(), username=username, password_hash=h, password_salt=s)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username already taken")
    db.refresh(user)
    logger.info("user_registered id=%s username=%s", user.id, user.username)
    return {"ok": True, "user_id": user.id}


@router.post("/login")
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> dict:
    username = payload.username.strip()
    user = db.execute(select(User).where(User.username == username)).scalars().first()
    if not user or not verify_password(payload.password, user.password_hash, user.password_salt):
        logger.info("login_failed username=%s", username)
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = create_session_token(user_id=user.id, username=user.username, name=user.name)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.app_env.lower() == "prod",
        max_age=int(settings.auth_session_hours * 3600),
        path="/",
    )
    return {
        "ok": True,
        "token": token,
        "user": {"id": user.id, "username": user.username, "name": user.name},
    }


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    return {"ok": True}


@router.get("/profile")
def profile(current: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    user = db.get(User, current.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"ok": True, "user": ProfileRead.model_validate(user).model_dump(mode="json")}


@router.put("/change-password")
def change_password(
    payload: PasswordChangeRequest,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> dict:
    user = db.get(User, current.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not verify_password(payload.old_password, user.password_hash, user.password_salt):
        raise HTTPException(status_code=401, detail="Old password is incorrect")
    user.password_hash, user.password_salt = hash_password(payload.new_password)
    db.commit()
    logger.info("password_changed id=%s", user.id)
    return {"ok": True, "message": "Password updated successfully."}
