"""Conversions from database models to public schemas."""

from typing import List, Optional

from models.comment import CommentModel
from models.drawing import DrawingModel
from models.user import UserModel
from schemas.comment import Comment, CommentAuthor, CommentDrawing
from schemas.drawing import Drawing, DrawingAuthor
from schemas.user import User, UserProfile


def model_to_user(model: UserModel) -> User:
    """Project an account row onto the public ``User`` schema."""
    return User(
        user_id=model.user_id,
        username=model.username,
        email=model.email,
        name=model.name,
        phone=model.phone,
        role=model.role,
        status=model.status,
        profile=UserProfile(**model.profile) if model.profile else None,
        created_at=model.created_at,
    )


def _author(model: Optional[UserModel]) -> Optional[DrawingAuthor]:
    if model is None:
        return None
    return DrawingAuthor(user_id=model.user_id, name=model.name, email=model.email)


def model_to_drawing(
    model: DrawingModel, comments: Optional[List[Comment]] = None
) -> Drawing:
    return Drawing(
        id=model.id,
        title=model.title,
        description=model.description,
        image_url=model.image_url,
        author=_author(model.author),
        average_rating=model.average_rating or 0.0,
        rating_count=len(model.ratings),
        created_at=model.created_at,
        comments=comments,
    )


def model_to_comment(model: CommentModel, include_drawing: bool = False) -> Comment:
    author = model.author
    drawing = None
    if include_drawing and model.drawing is not None:
        drawing = CommentDrawing(
            id=model.drawing.id,
            title=model.drawing.title,
            image_url=model.drawing.image_url,
        )
    return Comment(
        id=model.id,
        content=model.content,
        drawing_id=model.drawing_id,
        author=CommentAuthor(
            user_id=author.user_id, username=author.username, name=author.name
        )
        if author is not None
        else None,
        drawing=drawing,
        created_at=model.created_at,
    )
