"""User schema definitions.

Request and response models for registration, login, recovery and the
admin user console. ``User`` is the public projection of an account and
never carries credential hashes.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Role = Literal["student", "admin"]
Status = Literal["pending", "active", "rejected"]
ExperienceLevel = Literal["beginner", "intermediate", "advanced"]


class UserProfile(BaseModel):
    experience_level: Optional[ExperienceLevel] = None
    interests: List[str] = Field(default_factory=list)
    message: Optional[str] = None

    @field_validator("interests")
    @classmethod
    def _dedupe_interests(cls, value: List[str]) -> List[str]:
        seen = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class User(BaseModel):
    """Public projection of an account."""

    user_id: str
    username: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Role = "student"
    status: Status = "pending"
    profile: Optional[UserProfile] = None
    created_at: Optional[datetime] = None


class RegisterRequest(BaseModel):
    # Required fields are checked by UserManager so that every missing
    # field is reported at once.
    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    security_question: Optional[str] = None
    security_answer: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class RegisterResponse(BaseModel):
    message: str
    user: User
    token: str


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginUser(BaseModel):
    user_id: str
    username: str
    role: Role
    status: Status


class LoginResponse(BaseModel):
    user: LoginUser
    token: str


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class AdminLoginUser(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Role
    username: str


class AdminLoginResponse(BaseModel):
    user: AdminLoginUser
    token: str


class CurrentUserResponse(BaseModel):
    user: User


class SecurityQuestionRequest(BaseModel):
    username: str


class SecurityQuestionResponse(BaseModel):
    security_question: str


class ResetPasswordRequest(BaseModel):
    username: str
    security_answer: str
    new_password: Optional[str] = None


class CompleteEnrollmentRequest(BaseModel):
    phone: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    interests: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    security_question: Optional[str] = None
    security_answer: Optional[str] = None


class UpdateUserStatusRequest(BaseModel):
    status: str


class UpdateUserRoleRequest(BaseModel):
    role: str


class UserListResponse(BaseModel):
    users: List[User]
    current_page: int
    total_pages: int
    total_users: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserActionResponse(BaseModel):
    success: bool = True
    message: str
    user: User
