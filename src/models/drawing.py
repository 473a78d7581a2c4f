from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class DrawingModel(Base):
    __tablename__ = "drawings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=False)
    # Object store key, needed to delete the image later
    image_id = Column(String, nullable=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    average_rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.utc),
    )

    author = relationship("UserModel")
    ratings = relationship(
        "RatingModel",
        back_populates="drawing",
        cascade="all, delete-orphan",
    )


class RatingModel(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("drawing_id", "user_id", name="uq_ratings_drawing_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    drawing_id = Column(Integer, ForeignKey("drawings.id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    value = Column(Integer, nullable=False)

    drawing = relationship("DrawingModel", back_populates="ratings")
