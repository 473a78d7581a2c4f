"""Public enrollment application route."""

from fastapi import APIRouter, Request, status

from core.dependencies import EnrollmentManagerDep
from schemas.enrollment import Enrollment, EnrollmentRequest, EnrollmentResponse
from utils.audit import record_audit

router = APIRouter(prefix="/api", tags=["Enrollment"])


@router.post(
    "/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an enrollment application",
)
def submit_enrollment(
    req: EnrollmentRequest,
    request: Request,
    enrollment_manager: EnrollmentManagerDep = None,
) -> EnrollmentResponse:
    enrollment = enrollment_manager.submit(
        name=req.name,
        email=req.email,
        phone=req.phone,
        experience_level=req.experience_level,
        interests=req.interests,
        message=req.message,
    )
    record_audit(
        enrollment_manager.db,
        "ENROLLMENT_SUBMITTED",
        target_id=str(enrollment.id),
        details={"email": enrollment.email},
        request=request,
    )
    return EnrollmentResponse(
        message="Enrollment submitted successfully",
        data=Enrollment.model_validate(enrollment),
    )
