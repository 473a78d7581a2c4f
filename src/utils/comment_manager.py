"""Comment management utilities."""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session, joinedload

from core.exceptions import AuthorizationError, NotFoundError, ValidationError
from models.comment import CommentModel
from models.drawing import DrawingModel

logger = logging.getLogger(__name__)


def _clean_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required", fields={"content": "required"})
    return content


class CommentManager:
    """Manages comment persistence and ownership rules."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(CommentModel).options(
            joinedload(CommentModel.author), joinedload(CommentModel.drawing)
        )

    def _newest_first(self, query):
        return query.order_by(CommentModel.created_at.desc(), CommentModel.id.desc())

    def get_comment(self, comment_id: int, drawing_id: Optional[int] = None) -> CommentModel:
        query = self._query().filter(CommentModel.id == comment_id)
        if drawing_id is not None:
            query = query.filter(CommentModel.drawing_id == drawing_id)
        comment = query.first()
        if comment is None:
            raise NotFoundError("Comment")
        return comment

    def list_comments(self, drawing_id: int) -> List[CommentModel]:
        """List a drawing's comments, newest first."""
        return self._newest_first(
            self._query().filter(CommentModel.drawing_id == drawing_id)
        ).all()

    def list_user_comments(self, user_id: str) -> List[CommentModel]:
        return self._newest_first(self._query().filter(CommentModel.user_id == user_id)).all()

    def count_comments(self) -> int:
        return self.db.query(CommentModel).count()

    def add_comment(self, drawing_id: int, user_id: str, content: Optional[str]) -> CommentModel:
        """Add a comment to a drawing.

        Raises:
            ValidationError: If the content is empty.
            NotFoundError: If the drawing does not exist.
        """
        content = _clean_content(content)
        exists = self.db.query(DrawingModel.id).filter(DrawingModel.id == drawing_id).first()
        if exists is None:
            raise NotFoundError("Drawing")
        comment = CommentModel(content=content, drawing_id=drawing_id, user_id=user_id)
        self.db.add(comment)
        self.db.commit()
        logger.info("User %s commented on drawing %s", user_id, drawing_id)
        return self.get_comment(comment.id)

    def update_comment(
        self,
        comment_id: int,
        user_id: str,
        content: Optional[str],
        drawing_id: Optional[int] = None,
    ) -> CommentModel:
        """Edit a comment; only its author may."""
        comment = self.get_comment(comment_id, drawing_id)
        if comment.user_id != user_id:
            raise AuthorizationError("Not authorized to update this comment")
        comment.content = _clean_content(content)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def delete_comment(self, comment_id: int, user: Any, drawing_id: Optional[int] = None) -> None:
        """Delete a comment; its author or any admin may."""
        comment = self.get_comment(comment_id, drawing_id)
        if comment.user_id != user.user_id and user.role != "admin":
            raise AuthorizationError("Not authorized to delete this comment")
        self.db.delete(comment)
        self.db.commit()
        logger.info("Deleted comment %s", comment_id)

    def delete_comments_by_user(self, user_id: str) -> int:
        deleted = (
            self.db.query(CommentModel)
            .filter(CommentModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
