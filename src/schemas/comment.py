"""Comment schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CommentAuthor(BaseModel):
    user_id: str
    username: str
    name: Optional[str] = None


class CommentDrawing(BaseModel):
    id: int
    title: str
    image_url: str


class Comment(BaseModel):
    id: int
    content: str
    drawing_id: int
    author: Optional[CommentAuthor] = None
    drawing: Optional[CommentDrawing] = None
    created_at: Optional[datetime] = None


class CommentRequest(BaseModel):
    content: Optional[str] = None
