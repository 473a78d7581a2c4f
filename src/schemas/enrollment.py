"""Enrollment application schema definitions."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class EnrollmentRequest(BaseModel):
    # Required fields are validated by EnrollmentManager
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    experience_level: Optional[str] = None
    interests: Optional[List[str]] = None
    message: Optional[str] = None


class Enrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    experience_level: str
    interests: List[str]
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class EnrollmentResponse(BaseModel):
    success: bool = True
    message: str
    data: Enrollment


class UpdateEnrollmentStatusRequest(BaseModel):
    status: str
