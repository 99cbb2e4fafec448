import enum

from sqlalchemy import JSON, Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from mangareader.database import Base, table_args, table_name
from mangareader.models.user_model import utcnow


class ChapterType(enum.Enum):
    BOOK = "book"
    CHAPTER = "chapter"


class MangaChapter(Base):
    """A book or chapter of a manga with its ordered page images."""

    __tablename__ = "manga_chapters"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    manga_id = Column(
        Integer,
        ForeignKey(f"{table_name('manga')}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(300), nullable=False)
    slug = Column(String(300), unique=True, index=True, nullable=False)
    type = Column(
        SqlEnum(
            ChapterType,
            name="chapter_type",
            values_callable=lambda e: [m.value for m in e],
            inherit_schema=True,
        ),
        nullable=False,
        default=ChapterType.CHAPTER,
    )
    images = Column(JSON, nullable=False, default=list)
    author_id = Column(
        Integer,
        ForeignKey(f"{table_name('users')}.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    manga = relationship("Manga", back_populates="chapters")

    @property
    def page_count(self) -> int:
        return len(self.images or [])
