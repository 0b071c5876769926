"""Sign-up and login routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from todoai.api.deps import get_owner_scope
from todoai.api.schemas.auth import LoginRequest, ProfileResponse, SignupRequest, TokenResponse
from todoai.core.config import settings
from todoai.core.security import create_access_token
from todoai.db.access import OwnerScope
from todoai.db.deps import get_db
from todoai.observability.metrics import log_metric
from todoai.observability.tracing import trace
from todoai.services.user_service import authenticate, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)) -> ProfileResponse:
    """Register an email/password identity together with its profile."""
    with trace("auth.signup", metadata={"route": "/auth/signup"}):
        user = register_user(db, email=payload.email, password=payload.password, name=payload.name)
    log_metric("auth.signup.success", 1)
    return ProfileResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    with trace("auth.login", metadata={"route": "/auth/login"}):
        user = authenticate(db, email=payload.email, password=payload.password)
    log_metric("auth.login.success", 1)
    return TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=ProfileResponse)
def me(scope: OwnerScope = Depends(get_owner_scope)) -> ProfileResponse:
    return ProfileResponse.model_validate(scope.profile())
