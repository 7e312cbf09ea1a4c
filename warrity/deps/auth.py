from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..core.security import decode_token
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User
from ..settings import settings

SCHEME_API_KEY = "api_key"
SCHEME_JWT = "jwt"


class AuthContext:
    def __init__(self, *, subject: str, scheme: str, user_id: int | None = None, is_admin: bool = False) -> None:
        self.subject = subject
        self.scheme = scheme
        self.user_id = user_id
        self.is_admin = is_admin

    def can_access(self, owner_id: int | None) -> bool:
        return self.is_admin or (self.user_id is not None and owner_id == self.user_id)


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def require_principal(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the caller from an ``X-API-Key`` header or a bearer access token."""

    api_key = (settings.API_KEY or "").strip()
    provided_key = (x_api_key or "").strip()
    if provided_key:
        if api_key and hmac.compare_digest(api_key, provided_key):
            _set_principal(request, "api-key")
            return AuthContext(subject="api-key", scheme=SCHEME_API_KEY, is_admin=True)
        raise _unauthorized("Invalid API key")

    if not authorization:
        raise _unauthorized("Authorization required")

    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        raise _unauthorized("Bearer token required")
    try:
        payload = decode_token(credentials, verify_type="access")
    except ValueError as exc:
        raise _unauthorized(str(exc)) from exc

    try:
        user_id = int(payload.sub)
    except ValueError as exc:
        raise _unauthorized("Invalid token subject") from exc
    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("Account no longer exists")

    subject = f"user:{user.id}"
    _set_principal(request, subject)
    # Role is read from the database, never from the token scope.
    is_admin = user.is_admin
    return AuthContext(subject=subject, scheme=SCHEME_JWT, user_id=user.id, is_admin=is_admin)


def require_admin(auth: AuthContext = Depends(require_principal)) -> AuthContext:
    if not auth.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return auth
