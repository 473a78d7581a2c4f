from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class CommentModel(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    drawing_id = Column(Integer, ForeignKey("drawings.id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.utc),
    )

    author = relationship("UserModel")
    drawing = relationship("DrawingModel")
