"""
Post Store: persistence and reads for blog posts.

Writes go through one session per call and commit once, so an update either
lands completely or not at all. Concurrent updates to the same post are
last-write-wins; there is no version check (one author, one session).
"""
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from assets import AssetStore, resolve_cover
from errors import AssetUnavailable, DuplicateSlug, NotFound
from logger import get_logger
from models import Post, utcnow
from publishing import next_published_at, transition
from schemas import PostOut

log = get_logger("store")


class PostStore:
    def __init__(self, session_factory: sessionmaker, assets: AssetStore,
                 clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self.assets = assets
        self.clock = clock

    # ---------- writes ----------
    def create(self, title: str, slug: str, content: str, excerpt: str,
               publish: bool, cover_image: Optional[str] = None) -> str:
        self._check_cover(cover_image)
        now = self.clock()
        with self.session_factory() as s:
            self._check_slug(s, slug)
            p = Post(
                title=title, slug=slug, content=content, excerpt=excerpt,
                cover_image=cover_image or None,
                published_at=next_published_at(None, publish, now),
                created_at=now, updated_at=now,
            )
            s.add(p)
            self._commit(s, slug)
            log.info("created post %s slug=%s published=%s", p.id, slug, p.is_published)
            return p.id

    def update(self, identity: str, title: str, slug: str, content: str, excerpt: str,
               publish: bool, cover_image: Optional[str] = None) -> None:
        self._check_cover(cover_image)
        now = self.clock()
        with self.session_factory() as s:
            p = s.get(Post, identity)
            if p is None:
                raise NotFound(f"Post not found: {identity}")
            self._check_slug(s, slug, exclude=identity)
            before, after = transition(p.published_at, publish)
            p.title, p.slug, p.content, p.excerpt = title, slug, content, excerpt
            p.cover_image = cover_image or None
            p.published_at = next_published_at(p.published_at, publish, now)
            p.updated_at = now
            self._commit(s, slug)
            if before != after:
                log.info("post %s %s -> %s", identity, before.value, after.value)
            log.info("updated post %s slug=%s", identity, slug)

    def delete(self, identity: str) -> None:
        # the cover asset, if any, is left in the asset store
        with self.session_factory() as s:
            p = s.get(Post, identity)
            if p is None:
                raise NotFound(f"Post not found: {identity}")
            slug = p.slug
            s.delete(p)
            s.commit()
            log.info("deleted post %s slug=%s", identity, slug)

    # ---------- reads ----------
    def get(self, identity: str) -> Optional[PostOut]:
        with self.session_factory() as s:
            p = s.get(Post, identity)
            return self._out(p) if p else None

    def get_by_slug(self, slug: str) -> Optional[PostOut]:
        with self.session_factory() as s:
            p = s.execute(select(Post).where(Post.slug == slug)).scalar_one_or_none()
            return self._out(p) if p else None

    def list_all(self) -> List[PostOut]:
        with self.session_factory() as s:
            stmt = select(Post).order_by(Post.created_at.desc())
            return [self._out(p) for p in s.execute(stmt).scalars().all()]

    def list_published(self) -> List[PostOut]:
        with self.session_factory() as s:
            stmt = (select(Post)
                    .where(Post.published_at.is_not(None))
                    .order_by(Post.published_at.desc()))
            return [self._out(p) for p in s.execute(stmt).scalars().all()]

    # ---------- helpers ----------
    def _out(self, p: Post) -> PostOut:
        return PostOut.from_post(p, resolve_cover(self.assets, p.cover_image))

    def _check_cover(self, handle: Optional[str]) -> None:
        # a write never keeps a handle the asset store does not know
        if handle and self.assets.resolve(handle) is None:
            raise AssetUnavailable(f"Unknown asset handle: {handle}")

    @staticmethod
    def _check_slug(s: Session, slug: str, exclude: Optional[str] = None) -> None:
        stmt = select(Post.id).where(Post.slug == slug)
        if exclude is not None:
            stmt = stmt.where(Post.id != exclude)
        if s.execute(stmt).first() is not None:
            raise DuplicateSlug(slug)

    @staticmethod
    def _commit(s: Session, slug: str) -> None:
        try:
            s.commit()
        except IntegrityError as e:
            s.rollback()
            raise DuplicateSlug(slug) from e
