"""Comment routes, nested under drawings, plus per-user listings."""

from typing import List

from fastapi import APIRouter, Depends, status

from core.dependencies import CommentManagerDep
from schemas.comment import Comment, CommentRequest
from schemas.user import MessageResponse, User
from utils.converters import model_to_comment
from api.routes.auth import get_current_user

router = APIRouter(prefix="/api", tags=["Comments"])


@router.get(
    "/drawings/{drawing_id}/comments",
    response_model=List[Comment],
    summary="List comments on a drawing",
)
def list_comments(drawing_id: int, comment_manager: CommentManagerDep = None) -> List[Comment]:
    """List a drawing's comments, newest first. Unknown drawings have none."""
    return [model_to_comment(c) for c in comment_manager.list_comments(drawing_id)]


@router.post(
    "/drawings/{drawing_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a drawing",
)
def add_comment(
    drawing_id: int,
    req: CommentRequest,
    current_user: User = Depends(get_current_user),
    comment_manager: CommentManagerDep = None,
) -> Comment:
    comment = comment_manager.add_comment(drawing_id, current_user.user_id, req.content)
    return model_to_comment(comment)


@router.put(
    "/drawings/{drawing_id}/comments/{comment_id}",
    response_model=Comment,
    summary="Edit a comment",
)
def update_comment(
    drawing_id: int,
    comment_id: int,
    req: CommentRequest,
    current_user: User = Depends(get_current_user),
    comment_manager: CommentManagerDep = None,
) -> Comment:
    comment = comment_manager.update_comment(
        comment_id, current_user.user_id, req.content, drawing_id=drawing_id
    )
    return model_to_comment(comment)


@router.delete(
    "/drawings/{drawing_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete a comment",
)
def delete_comment(
    drawing_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    comment_manager: CommentManagerDep = None,
) -> MessageResponse:
    """Delete a comment. Its author or any admin may do so."""
    comment_manager.delete_comment(comment_id, current_user, drawing_id=drawing_id)
    return MessageResponse(message="Comment deleted successfully")


@router.get("/comments/user", response_model=List[Comment], summary="List my comments")
def list_my_comments(
    current_user: User = Depends(get_current_user),
    comment_manager: CommentManagerDep = None,
) -> List[Comment]:
    return [
        model_to_comment(c, include_drawing=True)
        for c in comment_manager.list_user_comments(current_user.user_id)
    ]


@router.get(
    "/comments/user/{user_id}",
    response_model=List[Comment],
    summary="List a user's comments",
)
def list_user_comments(
    user_id: str,
    current_user: User = Depends(get_current_user),
    comment_manager: CommentManagerDep = None,
) -> List[Comment]:
    return [
        model_to_comment(c, include_drawing=True)
        for c in comment_manager.list_user_comments(user_id)
    ]
