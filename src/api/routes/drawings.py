"""Drawing routes.

Public listing and detail; authenticated upload, edit, delete and rating.
Images arrive as multipart uploads and are handed to the configured image
storage backend.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from core.dependencies import CommentManagerDep, DrawingManagerDep
from schemas.drawing import Drawing, RateDrawingRequest, UpdateDrawingRequest
from schemas.user import MessageResponse, User
from utils.converters import model_to_comment, model_to_drawing
from api.routes.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/drawings", tags=["Drawings"])


@router.get("", response_model=List[Drawing], summary="List drawings")
def list_drawings(drawing_manager: DrawingManagerDep = None) -> List[Drawing]:
    """List all drawings, newest first."""
    return [model_to_drawing(d) for d in drawing_manager.list_drawings()]


@router.get("/{drawing_id}", response_model=Drawing, summary="Get a drawing with its comments")
def get_drawing(
    drawing_id: int,
    drawing_manager: DrawingManagerDep = None,
    comment_manager: CommentManagerDep = None,
) -> Drawing:
    drawing = drawing_manager.get_drawing(drawing_id)
    comments = [model_to_comment(c) for c in comment_manager.list_comments(drawing_id)]
    return model_to_drawing(drawing, comments=comments)


@router.post(
    "",
    response_model=Drawing,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a drawing",
)
def create_drawing(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    drawing_manager: DrawingManagerDep = None,
) -> Drawing:
    """Upload a drawing image with a title and optional description.

    Args:
        title: Drawing title.
        description: Optional description.
        image: Image file; must be image/* and within the size limit.
        current_user: Authenticated, active account.
        drawing_manager: Injected DrawingManager instance.

    Returns:
        The created drawing.
    """
    content = image.file.read() if image is not None else None
    drawing = drawing_manager.create_drawing(
        user_id=current_user.user_id,
        title=title,
        description=description,
        filename=image.filename if image is not None else None,
        content=content,
        content_type=image.content_type if image is not None else None,
    )
    return model_to_drawing(drawing)


@router.put("/{drawing_id}", response_model=Drawing, summary="Update a drawing")
def update_drawing(
    drawing_id: int,
    req: UpdateDrawingRequest,
    current_user: User = Depends(get_current_user),
    drawing_manager: DrawingManagerDep = None,
) -> Drawing:
    drawing = drawing_manager.update_drawing(
        drawing_id,
        current_user.user_id,
        title=req.title,
        description=req.description,
    )
    return model_to_drawing(drawing)


@router.delete("/{drawing_id}", response_model=MessageResponse, summary="Delete a drawing")
def delete_drawing(
    drawing_id: int,
    current_user: User = Depends(get_current_user),
    drawing_manager: DrawingManagerDep = None,
) -> MessageResponse:
    drawing_manager.delete_drawing(drawing_id, user_id=current_user.user_id)
    return MessageResponse(message="Drawing deleted successfully")


@router.post("/{drawing_id}/rate", response_model=Drawing, summary="Rate a drawing")
def rate_drawing(
    drawing_id: int,
    req: RateDrawingRequest,
    current_user: User = Depends(get_current_user),
    drawing_manager: DrawingManagerDep = None,
) -> Drawing:
    """Rate a drawing from 1 to 5; a second rating replaces the first."""
    drawing = drawing_manager.rate_drawing(drawing_id, current_user.user_id, req.rating)
    return model_to_drawing(drawing)
