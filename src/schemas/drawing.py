"""Drawing schema definitions."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, StrictInt

from schemas.comment import Comment


class DrawingAuthor(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None


class Drawing(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    image_url: str
    author: Optional[DrawingAuthor] = None
    average_rating: float = 0.0
    rating_count: int = 0
    created_at: Optional[datetime] = None
    # Only populated on the single-drawing view
    comments: Optional[List[Comment]] = None


class UpdateDrawingRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class RateDrawingRequest(BaseModel):
    # Strict so booleans, floats and numeric strings are not coerced
    rating: Optional[StrictInt] = None
