from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from mangareader.database import Base, table_args, table_name
from mangareader.models.user_model import utcnow


class Manga(Base):
    __tablename__ = "manga"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String, nullable=True)  # poster URL
    tag_list = Column(JSON, nullable=False, default=list)
    slug = Column(String(300), unique=True, index=True, nullable=False)

    uploader_id = Column(
        Integer,
        ForeignKey(f"{table_name('users')}.id", ondelete="SET NULL"),
        nullable=True,
    )
    last_editor_id = Column(
        Integer,
        ForeignKey(f"{table_name('users')}.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    chapters = relationship(
        "MangaChapter",
        back_populates="manga",
        order_by="MangaChapter.created_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
