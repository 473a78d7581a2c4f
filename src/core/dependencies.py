"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
Managers are request-scoped and built on the request's DB session; the
hasher, token service and OAuth client are built from ``AuthSettings``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from config import AuthSettings, get_auth_settings
from core.database import get_db
from core.security import PasswordHasher, TokenService
from utils import admin_manager
from utils import comment_manager
from utils import drawing_manager
from utils import enrollment_manager
from utils import image_storage
from utils import oauth_client
from utils import user_manager

SettingsDep = Annotated[AuthSettings, Depends(get_auth_settings)]
DbDep = Annotated[Session, Depends(get_db)]


def get_password_hasher(settings: SettingsDep) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_token_service(settings: SettingsDep) -> TokenService:
    return TokenService(settings)


def get_oauth_client(settings: SettingsDep) -> oauth_client.GoogleOAuthClient:
    return oauth_client.GoogleOAuthClient(settings)


def get_image_storage() -> image_storage.ImageStorage:
    """Get the configured image storage backend (cached per process)."""
    return image_storage.get_image_storage()


def get_user_manager(
    db: DbDep,
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.
        hasher: Password hasher built from the auth settings.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, hasher)


def get_drawing_manager(
    db: DbDep,
    storage: Annotated[image_storage.ImageStorage, Depends(get_image_storage)],
) -> drawing_manager.DrawingManager:
    """Get DrawingManager instance with request-scoped DB session."""
    return drawing_manager.DrawingManager(db, storage)


def get_comment_manager(db: DbDep) -> comment_manager.CommentManager:
    return comment_manager.CommentManager(db)


def get_enrollment_manager(db: DbDep) -> enrollment_manager.EnrollmentManager:
    return enrollment_manager.EnrollmentManager(db)


def get_admin_manager(
    db: DbDep,
    users: Annotated[user_manager.UserManager, Depends(get_user_manager)],
    drawings: Annotated[drawing_manager.DrawingManager, Depends(get_drawing_manager)],
    comments: Annotated[comment_manager.CommentManager, Depends(get_comment_manager)],
) -> admin_manager.AdminManager:
    """Get AdminManager sharing the request's session with the other managers."""
    return admin_manager.AdminManager(db, users, drawings, comments)


# Type aliases for dependency injection
PasswordHasherDep = Annotated[PasswordHasher, Depends(get_password_hasher)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
OAuthClientDep = Annotated[
    oauth_client.GoogleOAuthClient, Depends(get_oauth_client)
]
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
DrawingManagerDep = Annotated[
    drawing_manager.DrawingManager, Depends(get_drawing_manager)
]
CommentManagerDep = Annotated[
    comment_manager.CommentManager, Depends(get_comment_manager)
]
EnrollmentManagerDep = Annotated[
    enrollment_manager.EnrollmentManager, Depends(get_enrollment_manager)
]
AdminManagerDep = Annotated[
    admin_manager.AdminManager, Depends(get_admin_manager)
]
