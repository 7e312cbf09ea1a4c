from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.security import SCOPE_ADMIN, decode_token, issue_token_pair
from ..crud.users import authenticate, create_user, get_user
from ..db.session import get_db
from ..deps.auth import AuthContext, require_principal
from ..models.user import User
from ..schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserOut

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _tokens_for(user: User) -> TokenResponse:
    pair = issue_token_pair(subject=str(user.id), scope=SCOPE_ADMIN if user.is_admin else None)
    return TokenResponse(**pair.model_dump())


@router.post("/register", response_model=UserOut, status_code=201, summary="Create a user account")
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = create_user(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return user


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for JWTs")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _tokens_for(user)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)):
    try:
        token = decode_token(payload.refresh_token, verify_type="refresh")
        user_id = int(token.sub)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    user = get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account no longer exists")
    return _tokens_for(user)


@router.get("/me", response_model=UserOut)
def me(auth: AuthContext = Depends(require_principal), db: Session = Depends(get_db)):
    if auth.user_id is None:
        raise HTTPException(status_code=404, detail="API key principals have no user profile")
    user = get_user(db, auth.user_id)
    if user is None:
        raise HTTPException(404, "Not found")
    return user
