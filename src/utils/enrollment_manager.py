"""Enrollment application utilities.

Applications arrive from the public enrollment form and are reviewed by an
admin. They are separate from user accounts.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.enrollment import EnrollmentModel
from utils.user_manager import EXPERIENCE_LEVELS

logger = logging.getLogger(__name__)

ENROLLMENT_STATUSES = ("pending", "approved", "rejected")


class EnrollmentManager:
    """Manages enrollment applications."""

    def __init__(self, db: Session):
        self.db = db

    def submit(
        self,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        experience_level: Optional[str],
        interests: Optional[List[str]],
        message: Optional[str] = None,
    ) -> EnrollmentModel:
        """Create a pending application.

        Raises:
            ValidationError: If a required field is missing or the
                experience level is unknown.
        """
        interests = [tag.strip() for tag in (interests or []) if tag and tag.strip()]
        required = {
            "name": name,
            "email": email,
            "phone": phone,
            "experience_level": experience_level,
            "interests": interests,
        }
        missing = {field: "required" for field, value in required.items() if not value}
        if missing:
            raise ValidationError("Missing required fields", fields=missing)
        if experience_level not in EXPERIENCE_LEVELS:
            raise ValidationError(
                "Invalid experience level",
                fields={"experience_level": "must be one of " + ", ".join(EXPERIENCE_LEVELS)},
            )

        enrollment = EnrollmentModel(
            name=name,
            email=email,
            phone=phone,
            experience_level=experience_level,
            interests=interests,
            message=message,
            status="pending",
        )
        self.db.add(enrollment)
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info("Enrollment application %s submitted", enrollment.id)
        return enrollment

    def list_enrollments(self) -> List[EnrollmentModel]:
        return (
            self.db.query(EnrollmentModel)
            .order_by(EnrollmentModel.created_at.desc(), EnrollmentModel.id.desc())
            .all()
        )

    def update_status(self, enrollment_id: int, status: str) -> EnrollmentModel:
        if status not in ENROLLMENT_STATUSES:
            raise ValidationError("Invalid status", fields={"status": "invalid"})
        enrollment = (
            self.db.query(EnrollmentModel).filter(EnrollmentModel.id == enrollment_id).first()
        )
        if enrollment is None:
            raise NotFoundError("Enrollment")
        enrollment.status = status
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info("Enrollment %s status updated to %s", enrollment_id, status)
        return enrollment
