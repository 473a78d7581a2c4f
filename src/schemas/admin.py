"""Admin console schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.user import UserProfile


class AdminStats(BaseModel):
    total_users: int
    pending_users: int
    total_drawings: int
    total_comments: int


class PageViews(BaseModel):
    page_views: int


class StudentEnrollment(BaseModel):
    """Enrollment view of a student account."""

    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str
    profile: Optional[UserProfile] = None
    created_at: Optional[datetime] = None
