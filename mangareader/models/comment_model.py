from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text

from mangareader.database import Base, table_args, table_name
from mangareader.models.user_model import utcnow


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    body = Column(Text, nullable=False)

    author_id = Column(
        Integer,
        ForeignKey(f"{table_name('users')}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    manga_id = Column(
        Integer,
        ForeignKey(f"{table_name('manga')}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
