"""Authentication routes.

This module handles HTTP endpoints for registration, login, password
recovery and Google sign-in, and defines the gate dependencies every
protected route uses.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import ADMIN_EMAIL, FRONTEND_URL, LOGIN_RATE_LIMIT
from core.dependencies import OAuthClientDep, TokenServiceDep, UserManagerDep
from core.exceptions import AuthError
from core.rate_limit import limiter
from models.user import UserModel
from schemas.user import (
    CompleteEnrollmentRequest,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    LoginUser,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    SecurityQuestionRequest,
    SecurityQuestionResponse,
    User,
    UserActionResponse,
    UserProfile,
)
from utils.converters import model_to_user
from utils.email_service import EmailService
from utils.user_manager import ensure_account_active, ensure_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# auto_error=False so a missing header becomes our own 401 body
security = HTTPBearer(auto_error=False)


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenServiceDep = None,
) -> dict:
    """Verify the bearer token from the Authorization header.

    Args:
        credentials: HTTP Bearer token credentials, if any.
        token_service: Injected TokenService.

    Returns:
        Decoded token payload.

    Raises:
        AuthError: If the header is missing or the token is invalid or expired.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return token_service.decode_access_token(credentials.credentials)


def get_authenticated_user(
    token_payload: dict = Depends(verify_token),
    user_manager: UserManagerDep = None,
) -> UserModel:
    """Resolve the account named by the token, whatever its status.

    Raises:
        AuthError: If the account no longer exists.
    """
    user = user_manager.get_user_by_id(token_payload["sub"])
    if user is None:
        raise AuthError("User not found")
    return user


def get_current_user(
    request: Request,
    user: UserModel = Depends(get_authenticated_user),
) -> User:
    """Get the current authenticated user, applying the approval policy.

    Admins pass regardless of status; other accounts must be active.

    Raises:
        AuthorizationError: If a non-admin account is not active.
    """
    ensure_account_active(user)
    current = model_to_user(user)
    request.state.user = current
    return current


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    ensure_admin(current_user)
    return current_user


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student account",
)
def register(
    req: RegisterRequest,
    user_manager: UserManagerDep = None,
    token_service: TokenServiceDep = None,
) -> RegisterResponse:
    """Register a new student account.

    The account starts pending and must be approved by an admin before the
    returned token grants access to protected routes.
    """
    user = user_manager.create_user(
        username=req.username,
        password=req.password,
        name=req.name,
        security_question=req.security_question,
        security_answer=req.security_answer,
        email=req.email,
        phone=req.phone,
    )
    token = token_service.create_access_token(user.user_id, user.role)
    return RegisterResponse(
        message="Registration successful. Please wait for admin approval.",
        user=model_to_user(user),
        token=token,
    )


@router.post("/login", response_model=LoginResponse, summary="Log in with username and password")
@limiter.limit(LOGIN_RATE_LIMIT)
def login(
    request: Request,
    req: LoginRequest,
    user_manager: UserManagerDep = None,
    token_service: TokenServiceDep = None,
) -> LoginResponse:
    user = user_manager.authenticate(req.username, req.password)
    token = token_service.create_access_token(user.user_id, user.role, username=user.username)
    logger.info("User %s logged in", user.username)
    return LoginResponse(
        user=LoginUser(
            user_id=user.user_id,
            username=user.username,
            role=user.role,
            status=user.status,
        ),
        token=token,
    )


@router.post(
    "/forgot-password/question",
    response_model=SecurityQuestionResponse,
    summary="Get the security question of an account",
)
def get_security_question(
    req: SecurityQuestionRequest,
    user_manager: UserManagerDep = None,
) -> SecurityQuestionResponse:
    return SecurityQuestionResponse(
        security_question=user_manager.get_security_question(req.username)
    )


@router.post(
    "/forgot-password/reset",
    response_model=MessageResponse,
    summary="Reset the password with the security answer",
)
def reset_password(
    req: ResetPasswordRequest,
    user_manager: UserManagerDep = None,
) -> MessageResponse:
    """Reset a password. No token is issued; the user logs in afterwards."""
    user_manager.reset_password(req.username, req.security_answer, req.new_password)
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=CurrentUserResponse, summary="Get the current account")
def get_me(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(user=current_user)


@router.get("/google", summary="Start Google sign-in")
def google_login(
    oauth_client: OAuthClientDep = None,
    token_service: TokenServiceDep = None,
) -> RedirectResponse:
    state = token_service.create_oauth_state()
    return RedirectResponse(oauth_client.authorization_url(state))


@router.get("/google/callback", summary="Google sign-in callback")
def google_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth_client: OAuthClientDep = None,
    token_service: TokenServiceDep = None,
    user_manager: UserManagerDep = None,
) -> RedirectResponse:
    """Finish Google sign-in and hand the token to the frontend.

    Pending accounts are sent to the enrollment form; everyone else to the
    dashboard. The token travels in the URL fragment.
    """
    token_service.verify_oauth_state(state)
    if error or not code:
        logger.warning("Google sign-in aborted: %s", error or "missing code")
        raise AuthError("Google authentication failed")

    profile = oauth_client.fetch_profile(code)
    user = user_manager.get_or_create_google_user(
        profile.google_id, profile.email, profile.name
    )
    token = token_service.create_access_token(user.user_id, user.role, username=user.username)
    target = "complete-enrollment" if user.status == "pending" else "dashboard"
    logger.info("Google sign-in for %s, redirecting to %s", user.username, target)
    return RedirectResponse(f"{FRONTEND_URL}/{target}#token={token}")


@router.post(
    "/complete-enrollment",
    response_model=UserActionResponse,
    summary="Complete the profile of a Google account",
)
def complete_enrollment(
    req: CompleteEnrollmentRequest,
    background_tasks: BackgroundTasks,
    user: UserModel = Depends(get_authenticated_user),
    user_manager: UserManagerDep = None,
) -> UserActionResponse:
    """Fill in phone, profile and security question; status stays pending."""
    profile = UserProfile(
        experience_level=req.experience_level,
        interests=req.interests,
        message=req.message,
    )
    updated = user_manager.complete_enrollment(
        user.user_id,
        phone=req.phone,
        profile=profile.model_dump(),
        security_question=req.security_question,
        security_answer=req.security_answer,
    )
    background_tasks.add_task(
        EmailService.send_enrollment_notification,
        ADMIN_EMAIL,
        {
            "name": updated.name or updated.username,
            "email": updated.email,
            "phone": updated.phone,
            "experience_level": profile.experience_level,
            "interests": profile.interests,
        },
    )
    return UserActionResponse(
        message="Enrollment completed. Please wait for admin approval.",
        user=model_to_user(updated),
    )
