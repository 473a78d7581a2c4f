"""Admin console routes.

Every route except login is behind the Auth Gate and the admin Role Gate.
Status changes email the account holder in the background and are
recorded in the audit log.
"""

import logging
import math
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from config import DEFAULT_PAGE_SIZE, LOGIN_RATE_LIMIT, MAX_PAGE_SIZE
from core.dependencies import (
    AdminManagerDep,
    DrawingManagerDep,
    EnrollmentManagerDep,
    TokenServiceDep,
    UserManagerDep,
)
from core.rate_limit import limiter
from schemas.admin import AdminStats, PageViews, StudentEnrollment
from schemas.enrollment import Enrollment, UpdateEnrollmentStatusRequest
from schemas.user import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminLoginUser,
    MessageResponse,
    UpdateUserRoleRequest,
    UpdateUserStatusRequest,
    User,
    UserListResponse,
    UserProfile,
)
from utils.audit import record_audit
from utils.converters import model_to_user
from utils.email_service import EmailService
from utils.user_manager import UserManager
from api.routes.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _change_status(
    request: Request,
    background_tasks: BackgroundTasks,
    user_manager: UserManager,
    admin: User,
    user_id: str,
    new_status: str,
) -> User:
    """Apply a status change, email the account holder and audit it."""
    previous_status = user_manager.get_user(user_id).status
    user = user_manager.set_status(user_id, new_status)
    if user.email:
        background_tasks.add_task(
            EmailService.send_status_update_email,
            user.email,
            user.name or user.username,
            user.status,
        )
    record_audit(
        user_manager.db,
        "UPDATE_USER_STATUS",
        actor_id=admin.user_id,
        target_id=user.user_id,
        details={"previous_status": previous_status, "new_status": user.status},
        request=request,
    )
    return model_to_user(user)


@router.post("/login", response_model=AdminLoginResponse, summary="Admin login")
@limiter.limit(LOGIN_RATE_LIMIT)
def admin_login(
    request: Request,
    req: AdminLoginRequest,
    user_manager: UserManagerDep = None,
    token_service: TokenServiceDep = None,
) -> AdminLoginResponse:
    """Log an admin in by email. A pending admin is activated on first login."""
    user = user_manager.authenticate_admin(req.email, req.password)
    token = token_service.create_access_token(
        user.user_id, user.role, username=user.username, admin_session=True
    )
    logger.info("Admin %s logged in", user.username)
    return AdminLoginResponse(
        user=AdminLoginUser(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            username=user.username,
        ),
        token=token,
    )


@router.get("/stats", response_model=AdminStats, summary="Site statistics")
def get_stats(
    admin: User = Depends(require_admin),
    admin_manager: AdminManagerDep = None,
) -> AdminStats:
    return AdminStats(**admin_manager.get_stats())


@router.get("/stats/pageviews", response_model=PageViews, summary="Page view counter")
def get_page_views(
    admin: User = Depends(require_admin),
    admin_manager: AdminManagerDep = None,
) -> PageViews:
    return PageViews(page_views=admin_manager.get_page_views())


@router.get("/users", response_model=UserListResponse, summary="List users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> UserListResponse:
    """List accounts newest first, one page at a time.

    Args:
        page: 1-based page number.
        limit: Page size.
        admin: Authenticated admin.
        user_manager: Injected UserManager instance.

    Returns:
        The page of users with pagination totals.
    """
    users, total = user_manager.list_users(page=page, limit=limit)
    return UserListResponse(
        users=[model_to_user(u) for u in users],
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_users=total,
    )


@router.patch("/users/{user_id}/approve", response_model=User, summary="Approve a user")
def approve_user(
    user_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> User:
    return _change_status(request, background_tasks, user_manager, admin, user_id, "active")


@router.patch("/users/{user_id}/reject", response_model=User, summary="Reject a user")
def reject_user(
    user_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> User:
    return _change_status(request, background_tasks, user_manager, admin, user_id, "rejected")


@router.patch("/users/{user_id}/status", response_model=User, summary="Set a user's status")
def update_user_status(
    user_id: str,
    req: UpdateUserStatusRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> User:
    return _change_status(request, background_tasks, user_manager, admin, user_id, req.status)


@router.patch("/users/{user_id}/role", response_model=User, summary="Set a user's role")
def update_user_role(
    user_id: str,
    req: UpdateUserRoleRequest,
    request: Request,
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> User:
    user = user_manager.set_role(user_id, req.role)
    record_audit(
        user_manager.db,
        "UPDATE_USER_ROLE",
        actor_id=admin.user_id,
        target_id=user.user_id,
        details={"role": user.role},
        request=request,
    )
    return model_to_user(user)


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete a user")
def delete_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    admin_manager: AdminManagerDep = None,
) -> MessageResponse:
    """Delete a user with their drawings, comments and ratings."""
    deleted = admin_manager.delete_user_cascade(user_id)
    record_audit(
        admin_manager.db,
        "DELETE_USER",
        actor_id=admin.user_id,
        target_id=user_id,
        details=deleted,
        request=request,
    )
    return MessageResponse(message="User and associated data deleted successfully")


@router.delete(
    "/drawings/{drawing_id}",
    response_model=MessageResponse,
    summary="Delete any drawing",
)
def delete_drawing(
    drawing_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    drawing_manager: DrawingManagerDep = None,
) -> MessageResponse:
    drawing_manager.delete_drawing(drawing_id)
    record_audit(
        drawing_manager.db,
        "DELETE_DRAWING",
        actor_id=admin.user_id,
        target_id=str(drawing_id),
        request=request,
    )
    return MessageResponse(message="Drawing deleted successfully")


@router.get(
    "/students",
    response_model=List[StudentEnrollment],
    summary="Enrollment view of student accounts",
)
def list_students(
    admin: User = Depends(require_admin),
    user_manager: UserManagerDep = None,
) -> List[StudentEnrollment]:
    return [
        StudentEnrollment(
            user_id=u.user_id,
            name=u.name,
            email=u.email,
            phone=u.phone,
            status=u.status,
            profile=UserProfile(**u.profile) if u.profile else None,
            created_at=u.created_at,
        )
        for u in user_manager.list_students()
    ]


@router.get(
    "/enrollments",
    response_model=List[Enrollment],
    summary="List enrollment applications",
)
def list_enrollments(
    admin: User = Depends(require_admin),
    enrollment_manager: EnrollmentManagerDep = None,
) -> List[Enrollment]:
    return [Enrollment.model_validate(e) for e in enrollment_manager.list_enrollments()]


@router.patch(
    "/enrollments/{enrollment_id}/status",
    response_model=Enrollment,
    summary="Update an enrollment application's status",
)
def update_enrollment_status(
    enrollment_id: int,
    req: UpdateEnrollmentStatusRequest,
    request: Request,
    admin: User = Depends(require_admin),
    enrollment_manager: EnrollmentManagerDep = None,
) -> Enrollment:
    enrollment = enrollment_manager.update_status(enrollment_id, req.status)
    record_audit(
        enrollment_manager.db,
        "UPDATE_ENROLLMENT_STATUS",
        actor_id=admin.user_id,
        target_id=str(enrollment_id),
        details={"status": enrollment.status},
        request=request,
    )
    return Enrollment.model_validate(enrollment)
