import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, DateTime


def utcnow() -> datetime:
    # naive UTC, the form SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_identity() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase): pass


class Post(Base):
    __tablename__ = "posts"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_identity)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    content: Mapped[str] = mapped_column(Text, default="")   # markdown source
    excerpt: Mapped[str] = mapped_column(String(500), default="")
    cover_image: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)   # asset handle
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    def __repr__(self):
        return f"<Post {self.id} slug={self.slug!r} published={self.is_published}>"
