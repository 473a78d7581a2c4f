"""User database model.

This module defines the User (account) database model using SQLAlchemy.
Credential hashes are deferred: a plain query never loads them, and the
credential checks in ``UserManager`` undefer them explicitly.
"""

from datetime import datetime

import pytz
from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.orm import deferred
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    # NULLs never collide under a unique index, so email is sparse-unique
    email = Column(String, unique=True, index=True, nullable=True)
    password_hash = deferred(Column(String, nullable=True))
    google_id = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default="student")  # 'student' or 'admin'
    status = Column(String, nullable=False, default="pending", index=True)
    security_question = Column(String, nullable=True)
    security_answer_hash = deferred(Column(String, nullable=True))
    # {"experience_level": ..., "interests": [...], "message": ...}
    profile = Column(JSON, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.utc),
    )
