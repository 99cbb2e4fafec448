from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from mangareader.database import Base, table_args


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(32), unique=True, index=True, nullable=False)
    email = Column(String(320), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")  # user or admin
    image = Column(String, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "image": self.image or "",
        }

    def to_user_response(self, token: str) -> dict:
        return {**self.to_public(), "token": token}
