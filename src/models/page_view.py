from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.sql import func

from .base import Base


class PageViewModel(Base):
    """Site-wide page view counter; a single row."""

    __tablename__ = "page_views"

    id = Column(Integer, primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    last_updated = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
