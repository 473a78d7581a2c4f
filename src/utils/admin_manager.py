"""Admin console utilities: statistics, page views and account removal."""

import logging
from datetime import datetime
from typing import Dict

import pytz
from sqlalchemy.orm import Session

from models.page_view import PageViewModel
from utils.comment_manager import CommentManager
from utils.drawing_manager import DrawingManager
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)


class AdminManager:
    """Aggregates the other managers for admin-only operations."""

    def __init__(
        self,
        db: Session,
        user_manager: UserManager,
        drawing_manager: DrawingManager,
        comment_manager: CommentManager,
    ):
        self.db = db
        self.user_manager = user_manager
        self.drawing_manager = drawing_manager
        self.comment_manager = comment_manager

    def get_stats(self) -> Dict[str, int]:
        stats = {
            "total_users": self.user_manager.count_users(),
            "pending_users": self.user_manager.count_users(status="pending"),
            "total_drawings": self.drawing_manager.count_drawings(),
            "total_comments": self.comment_manager.count_comments(),
        }
        logger.info("Admin stats retrieved: %s", stats)
        return stats

    def get_page_views(self) -> int:
        counter = self.db.query(PageViewModel).first()
        return counter.count if counter else 0

    def delete_user_cascade(self, user_id: str) -> Dict[str, int]:
        """Delete a user together with their drawings, comments and ratings.

        Each step commits on its own and nothing is rolled back if a later
        step fails: a partial failure leaves the earlier deletions in place.

        Returns:
            Counts of deleted drawings, comments and ratings.

        Raises:
            NotFoundError: If the user does not exist.
        """
        self.user_manager.get_user(user_id)
        deleted = {"drawings": 0, "comments": 0, "ratings": 0}
        try:
            deleted["drawings"] = self.drawing_manager.delete_drawings_by_user(user_id)
            deleted["comments"] = self.comment_manager.delete_comments_by_user(user_id)
            deleted["ratings"] = self.drawing_manager.delete_ratings_by_user(user_id)
            self.user_manager.delete_user(user_id)
        except Exception:
            logger.error(
                "Cascading delete of user %s stopped partway; already deleted: %s",
                user_id,
                deleted,
            )
            raise
        logger.info("Deleted user %s and associated data: %s", user_id, deleted)
        return deleted


def record_page_view(db: Session) -> None:
    """Increment the site-wide page view counter."""
    now = datetime.now(pytz.utc)
    updated = (
        db.query(PageViewModel)
        .update(
            {PageViewModel.count: PageViewModel.count + 1, PageViewModel.last_updated: now},
            synchronize_session=False,
        )
    )
    if not updated:
        db.add(PageViewModel(count=1, last_updated=now))
    db.commit()
