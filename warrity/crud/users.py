"""CRUD helpers for user accounts."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import ConflictError
from ..core.security import hash_password, verify_password
from ..core.warranty_status import utc_timestamp
from ..models.user import ROLE_ADMIN, ROLE_CHOICES, ROLE_USER, User
from ..models.warranty import Warranty
from .warranties import delete_warranty

logger = logging.getLogger("warrity.users")


def list_users(db: Session, limit: int = 200, offset: int = 0) -> list[User]:
    stmt = select(User).order_by(User.id).limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    cleaned = (email or "").strip().lower()
    if not cleaned:
        return None
    return db.execute(select(User).where(User.email == cleaned)).scalars().first()


def count_users(db: Session) -> dict[str, int]:
    total = db.scalar(select(func.count()).select_from(User)) or 0
    admins = db.scalar(select(func.count()).select_from(User).where(User.role == ROLE_ADMIN)) or 0
    return {"total": total, "admin": admins, "regular": total - admins}


def create_user(db: Session, payload: dict) -> User:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    email = (payload.get("email") or "").strip().lower()
    if not email:
        raise ValueError("email is required")
    password = payload.get("password") or ""
    if len(password) < 6:
        raise ValueError("password must be at least 6 characters long")
    role = payload.get("role") or ROLE_USER
    if role not in ROLE_CHOICES:
        raise ValueError(f"role must be one of {', '.join(ROLE_CHOICES)}")
    if get_user_by_email(db, email):
        raise ConflictError("A user with this email already exists")

    now = utc_timestamp()
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user.registered", extra={"extra_data": {"user_id": user.id, "role": user.role}})
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("auth.login_failed", extra={"extra_data": {"email": (email or "").strip().lower()}})
        return None
    return user


def update_user_role(db: Session, user: User, role: str) -> User:
    if role not in ROLE_CHOICES:
        raise ValueError("Invalid role")
    user.role = role
    user.updated_at = utc_timestamp()
    db.commit()
    db.refresh(user)
    logger.info("user.role_changed", extra={"extra_data": {"user_id": user.id, "role": role}})
    return user


def delete_user(db: Session, user: User, *, acting_user_id: int | None = None) -> None:
    """Delete an account together with its warranties and stored documents."""

    if acting_user_id is not None and user.id == acting_user_id:
        raise ValueError("Cannot delete your own account")
    user_id = user.id
    owned = db.execute(select(Warranty).where(Warranty.user_id == user_id)).scalars().all()
    for warranty in owned:
        delete_warranty(db, warranty)
    db.delete(user)
    db.commit()
    logger.info("user.deleted", extra={"extra_data": {"user_id": user_id, "warranties_removed": len(owned)}})
