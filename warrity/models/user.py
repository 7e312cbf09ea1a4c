"""SQLAlchemy model for registered accounts."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_CHOICES = (ROLE_USER, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default=ROLE_USER)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    warranties = relationship("Warranty", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


__all__ = ["ROLE_ADMIN", "ROLE_CHOICES", "ROLE_USER", "User"]
