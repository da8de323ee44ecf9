import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from models import Post
from publishing import PostState, state_of


def slugify(text: str) -> str:
    s = re.sub(r"[^a-zA-Z0-9]+", "-", (text or "").strip().lower()).strip("-")
    return s or "post"


class LoginIn(BaseModel):
    password: str


class TokenOut(BaseModel):
    token: str
    expires_at: datetime


class PostIn(BaseModel):
    title: str
    slug: Optional[str] = None
    content: str = ""
    excerpt: str = ""
    publish: bool = False
    cover_image: Optional[str] = None   # handle from POST /assets

    @model_validator(mode="after")
    def fill_slug(self):
        # the form may leave the slug blank; the store itself never derives one
        if not self.slug:
            self.slug = slugify(self.title)
        return self


class PostOut(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    excerpt: str
    cover_image: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: PostState
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, p: Post, cover_image_url: Optional[str] = None):
        return cls(
            id=p.id, title=p.title, slug=p.slug, content=p.content or "",
            excerpt=p.excerpt or "", cover_image=p.cover_image, cover_image_url=cover_image_url,
            status=state_of(p.published_at), published_at=p.published_at,
            created_at=p.created_at, updated_at=p.updated_at,
        )


class AssetOut(BaseModel):
    handle: str
    url: Optional[str] = Field(default=None)
