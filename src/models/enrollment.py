"""Enrollment application database model.

Applications are submitted from the public enrollment form and reviewed by
an admin; they are independent of user accounts.
"""

from datetime import datetime

import pytz
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from .base import Base


class EnrollmentModel(Base):
    """Enrollment application database model."""

    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    experience_level = Column(String, nullable=False)  # beginner / intermediate / advanced
    interests = Column(JSON, nullable=False, default=list)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")  # pending / approved / rejected
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.utc),
    )
