from datetime import datetime
from typing import List, Optional

from fastapi import Form
from pydantic import BaseModel, ConfigDict, Field

from mangareader.models.chapter_model import ChapterType


class MangaForm(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    tag_list: List[str] = []
    slug: Optional[str] = None

    @classmethod
    def as_form(
            cls,
            title: str = Form(...),
            description: Optional[str] = Form(None),
            tag_list: List[str] = Form([]),
            slug: Optional[str] = Form(None),
    ) -> "MangaForm":
        tags = [t.strip() for t in tag_list if t and t.strip()]
        return cls(title=title, description=description, tag_list=tags, slug=slug or None)


class ChapterForm(BaseModel):
    manga_slug: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=300)
    slug: Optional[str] = None

    @classmethod
    def as_form(
            cls,
            manga_slug: str = Form(...),
            title: str = Form(...),
            slug: Optional[str] = Form(None),
    ) -> "ChapterForm":
        return cls(manga_slug=manga_slug, title=title, slug=slug or None)


class ChapterSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    title: str
    slug: str
    type: ChapterType
    page_count: int = 0
    created_at: datetime


class ChapterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    manga_id: int
    title: str
    slug: str
    type: ChapterType
    images: List[str] = []
    author_id: Optional[int] = None
    created_at: datetime


class MangaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    tag_list: List[str] = []
    slug: str
    uploader_id: Optional[int] = None
    last_editor_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class MangaDetailOut(MangaOut):
    chapters: List[ChapterSummaryOut] = []


class MangaResponse(BaseModel):
    manga: MangaDetailOut


class MangaUpdatedResponse(BaseModel):
    message: str
    manga: MangaDetailOut


class ChapterCreatedResponse(BaseModel):
    message: str
    chapter: ChapterOut


class MessageResponse(BaseModel):
    message: str
