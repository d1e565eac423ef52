# PURPOSE: /auth/register, /auth/login, /auth/logout, /auth/me

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from .. import store_db
from ..auth import create_access_token, get_current_owner_id, hash_password, verify_password
from ..config import settings
from ..db import get_db
from ..errors import Unauthenticated
from ..models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserPublic
from ..rate_limit import limiter

log = logging.getLogger("tasklane.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
def register_user(
    request: Request, response: Response, payload: RegisterRequest, db: Session = Depends(get_db)
):
    # store_db.create_user raises Conflict on a duplicate email
    user = store_db.create_user(
        db,
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
    )
    log.info("user_registered user_id=%s", user.id)
    return AuthResponse(user=UserPublic.model_validate(user), token=create_access_token(user.id))


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request, response: Response, payload: LoginRequest, db: Session = Depends(get_db)
):
    user = store_db.get_user_by_email(db, payload.email.strip().lower())
    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")
    return AuthResponse(user=UserPublic.model_validate(user), token=create_access_token(user.id))


@router.post("/logout", response_model=MessageResponse)
def logout(owner_id: str = Depends(get_current_owner_id)):
    # Tokens are stateless; the client drops its copy
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserPublic)
def me(owner_id: str = Depends(get_current_owner_id), db: Session = Depends(get_db)):
    user = store_db.get_user(db, owner_id)
    if user is None:
        raise Unauthenticated()
    return user
