"""Drawing management utilities.

Drawings are image-backed posts. This module covers creation with image
upload, author-only edits, deletion together with the image, ratings and
comments, and per-user ratings with a running average.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from config import MAX_IMAGE_BYTES
from core.exceptions import (
    AuthorizationError,
    ImageStorageError,
    NotFoundError,
    ValidationError,
)
from models.comment import CommentModel
from models.drawing import DrawingModel, RatingModel
from utils.image_storage import ImageStorage

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class DrawingManager:
    """Manages Drawing operations."""

    def __init__(self, db: Session, storage: ImageStorage):
        self.db = db
        self.storage = storage

    def _query(self):
        return self.db.query(DrawingModel).options(
            joinedload(DrawingModel.author),
            selectinload(DrawingModel.ratings),
        )

    def list_drawings(self) -> List[DrawingModel]:
        """List all drawings, newest first."""
        return (
            self._query()
            .order_by(DrawingModel.created_at.desc(), DrawingModel.id.desc())
            .all()
        )

    def get_drawing(self, drawing_id: int) -> DrawingModel:
        drawing = self._query().filter(DrawingModel.id == drawing_id).first()
        if drawing is None:
            raise NotFoundError("Drawing")
        return drawing

    def count_drawings(self) -> int:
        return self.db.query(DrawingModel).count()

    def create_drawing(
        self,
        user_id: str,
        title: Optional[str],
        description: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
        content_type: Optional[str],
    ) -> DrawingModel:
        """Upload the image and create the drawing record.

        Args:
            user_id: Author of the drawing.
            title: Required title.
            description: Optional description.
            filename: Original upload filename.
            content: Image bytes.
            content_type: MIME type of the upload; must be image/*.

        Returns:
            The created DrawingModel.

        Raises:
            ValidationError: If the image is missing, not an image or too
                large, or the title is empty.
        """
        if not content:
            raise ValidationError("Please upload an image", fields={"image": "required"})
        if not (content_type or "").startswith("image/"):
            raise ValidationError(
                "Not an image! Please upload an image file.",
                fields={"image": "must be an image"},
            )
        if len(content) > MAX_IMAGE_BYTES:
            raise ValidationError(
                f"Image exceeds the {MAX_IMAGE_BYTES // (1024 * 1024)}MB limit",
                fields={"image": "too large"},
            )
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", fields={"title": "required"})

        stored = self.storage.save(filename or "image", content, content_type)
        drawing = DrawingModel(
            title=title,
            description=description,
            image_url=stored.url,
            image_id=stored.image_id,
            user_id=user_id,
            average_rating=0.0,
        )
        self.db.add(drawing)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            # Do not leave an orphaned image behind
            self.storage.delete(stored.image_id)
            raise
        logger.info("Created drawing %s by user %s", drawing.id, user_id)
        return self.get_drawing(drawing.id)

    def _ensure_author(self, drawing: DrawingModel, user_id: str, action: str) -> None:
        if drawing.user_id != user_id:
            raise AuthorizationError(f"Not authorized to {action} this drawing")

    def update_drawing(
        self,
        drawing_id: int,
        user_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> DrawingModel:
        """Update title/description; only the author may do so."""
        drawing = self.get_drawing(drawing_id)
        self._ensure_author(drawing, user_id, "update")
        if title is not None:
            title = title.strip()
            if not title:
                raise ValidationError("Title cannot be empty", fields={"title": "required"})
            drawing.title = title
        if description is not None:
            drawing.description = description
        self.db.commit()
        self.db.refresh(drawing)
        return drawing

    def delete_drawing(self, drawing_id: int, user_id: Optional[str] = None) -> None:
        """Delete a drawing with its image, ratings and comments.

        Args:
            drawing_id: Drawing to delete.
            user_id: Acting author. None skips the author check (moderation).
        """
        drawing = self.get_drawing(drawing_id)
        if user_id is not None:
            self._ensure_author(drawing, user_id, "delete")
        self._delete(drawing)

    def _delete(self, drawing: DrawingModel) -> None:
        drawing_id, image_id = drawing.id, drawing.image_id
        self.db.query(CommentModel).filter(CommentModel.drawing_id == drawing_id).delete(
            synchronize_session=False
        )
        # Ratings go with the drawing (delete-orphan cascade)
        self.db.delete(drawing)
        self.db.commit()
        logger.info("Deleted drawing %s", drawing_id)
        # The row is gone first so a storage failure can only orphan an image
        if image_id:
            try:
                self.storage.delete(image_id)
            except ImageStorageError as e:
                logger.error("Orphaned image %s of deleted drawing %s: %s", image_id, drawing_id, e)

    def delete_drawings_by_user(self, user_id: str) -> int:
        """Delete every drawing authored by a user, one at a time."""
        drawings = self.db.query(DrawingModel).filter(DrawingModel.user_id == user_id).all()
        for drawing in drawings:
            self._delete(drawing)
        return len(drawings)

    # --- Ratings ---

    @staticmethod
    def _recalculate_average(drawing: DrawingModel) -> None:
        values = [rating.value for rating in drawing.ratings]
        drawing.average_rating = sum(values) / len(values) if values else 0.0

    def rate_drawing(self, drawing_id: int, user_id: str, value) -> DrawingModel:
        """Record a user's 1-5 rating, replacing any earlier one.

        Raises:
            ValidationError: If the value is not an integer from 1 to 5.
            NotFoundError: If the drawing does not exist.
        """
        if (
            isinstance(value, bool)
            or not isinstance(value, int)
            or not MIN_RATING <= value <= MAX_RATING
        ):
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                fields={"rating": "invalid"},
            )
        drawing = self.get_drawing(drawing_id)

        existing = next((r for r in drawing.ratings if r.user_id == user_id), None)
        if existing is not None:
            existing.value = value
        else:
            drawing.ratings.append(RatingModel(user_id=user_id, value=value))
        self._recalculate_average(drawing)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request inserted this user's rating first
            self.db.rollback()
            self.db.query(RatingModel).filter(
                RatingModel.drawing_id == drawing_id, RatingModel.user_id == user_id
            ).update({"value": value}, synchronize_session=False)
            drawing = self.get_drawing(drawing_id)
            self.db.refresh(drawing, attribute_names=["ratings"])
            self._recalculate_average(drawing)
            self.db.commit()
        self.db.refresh(drawing)
        return drawing

    def delete_ratings_by_user(self, user_id: str) -> int:
        """Remove a user's ratings and refresh the affected averages."""
        ratings = self.db.query(RatingModel).filter(RatingModel.user_id == user_id).all()
        drawing_ids = {rating.drawing_id for rating in ratings}
        for rating in ratings:
            self.db.delete(rating)
        self.db.flush()
        for drawing_id in drawing_ids:
            drawing = self.db.query(DrawingModel).filter(DrawingModel.id == drawing_id).first()
            if drawing is not None:
                self.db.refresh(drawing, attribute_names=["ratings"])
                self._recalculate_average(drawing)
        self.db.commit()
        return len(ratings)
