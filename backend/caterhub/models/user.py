"""
CaterHub Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table: every account, whatever its role.
Why:   A CATERER account is the tenant that owns dishes, packages and
       package items; USER and ADMIN accounts exist for the marketplace
       front end but own nothing here.

Table Design Rationale:
    - email: unique and stored lower-cased (normalized by AuthService)
    - password_hash: bcrypt hash, never serialized by any response schema
    - role: immutable after signup; no exposed operation changes it
    - company_name: required only for CATERER accounts (checked at signup)
"""

import enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from caterhub.database import Base
from caterhub.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    CATERER = "CATERER"


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def is_caterer(self) -> bool:
        return self.role == Role.CATERER.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
