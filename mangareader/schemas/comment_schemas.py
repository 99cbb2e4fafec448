from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CommentBodyIn(BaseModel):
    body: str = Field(min_length=1, max_length=5000)


class CreateCommentIn(BaseModel):
    comments: CommentBodyIn


class CommentAuthorOut(BaseModel):
    username: str
    image: str = ""


class CommentOut(BaseModel):
    id: int
    body: str
    created_at: datetime
    updated_at: datetime
    author: CommentAuthorOut


class CommentListOut(BaseModel):
    comments: List[CommentOut] = []
    message: Optional[str] = None


class CommentCreatedOut(BaseModel):
    message: str
    comments: CommentOut
