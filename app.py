import uvicorn
from datetime import timedelta
from typing import List, Optional

from fastapi import FastAPI, Depends, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from assets import AssetStore, LocalAssetStore
from auth import CredentialGate, TokenIssuer, login, require_admin
from config import Settings, get_settings
from errors import BlogError, InvalidUpload, NotFound
from logger import get_logger, setup_logging
from models import Base
from schemas import AssetOut, LoginIn, PostIn, PostOut, TokenOut
from store import PostStore

log = get_logger("app")


def blog_error_handler(request: Request, exc: BlogError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app(settings: Optional[Settings] = None, assets: Optional[AssetStore] = None,
               store: Optional[PostStore] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    if assets is None:
        assets = LocalAssetStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX,
                                 timeout=settings.ASSET_TIMEOUT_SECONDS)
    if store is None:
        connect_args = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}
        engine = create_engine(settings.DB_URL, connect_args=connect_args)
        Base.metadata.create_all(engine)
        store = PostStore(sessionmaker(engine, expire_on_commit=False), assets)

    app = FastAPI(title="Blog API")
    app.state.settings = settings
    app.state.gate = CredentialGate(settings.ADMIN_PASSWORD)
    app.state.tokens = TokenIssuer(settings.TOKEN_SECRET, timedelta(minutes=settings.TOKEN_TTL_MINUTES))
    app.state.assets = assets
    app.state.store = store

    app.add_exception_handler(BlogError, blog_error_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )
    if isinstance(assets, LocalAssetStore):
        app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=str(assets.directory)), name="uploads")

    # ---------- Auth ----------
    @app.post("/auth/login", response_model=TokenOut)
    def auth_login(data: LoginIn):
        token, expires = login(app.state.gate, app.state.tokens, data.password)
        return TokenOut(token=token, expires_at=expires)

    # ---------- Read ----------
    @app.get("/posts", response_model=List[PostOut])
    def list_posts():
        return app.state.store.list_published()

    @app.get("/posts/{slug}", response_model=PostOut)
    def get_post(slug: str):
        # drafts are served too; status tells the page which it is
        p = app.state.store.get_by_slug(slug)
        if p is None:
            raise NotFound(f"Post not found: {slug}")
        return p

    @app.get("/admin/posts", response_model=List[PostOut])
    def list_all_posts(_admin=Depends(require_admin)):
        return app.state.store.list_all()

    # ---------- Write ----------
    @app.post("/posts", response_model=PostOut, status_code=201)
    def create_post(data: PostIn, _admin=Depends(require_admin)):
        s = app.state.store
        post_id = s.create(data.title, data.slug, data.content, data.excerpt,
                           data.publish, data.cover_image)
        return s.get(post_id)

    @app.put("/posts/{post_id}", response_model=PostOut)
    def update_post(post_id: str, data: PostIn, _admin=Depends(require_admin)):
        s = app.state.store
        s.update(post_id, data.title, data.slug, data.content, data.excerpt,
                 data.publish, data.cover_image)
        return s.get(post_id)

    @app.delete("/posts/{post_id}")
    def delete_post(post_id: str, _admin=Depends(require_admin)):
        app.state.store.delete(post_id)
        return {"ok": True}

    # ---------- Assets ----------
    @app.post("/assets", response_model=AssetOut, status_code=201)
    async def upload_asset(file: UploadFile = File(...), _admin=Depends(require_admin)):
        content_type = (file.content_type or "").lower()
        if content_type not in settings.allowed_image_types:
            allowed = ", ".join(sorted(settings.allowed_image_types))
            raise InvalidUpload(f"Allowed: {allowed}")

        contents = await file.read()
        if len(contents) > settings.max_upload_bytes:
            raise InvalidUpload(f"File too large (max {settings.MAX_UPLOAD_MB} MB)")

        handle = await run_in_threadpool(app.state.assets.store, contents, content_type)
        url = await run_in_threadpool(app.state.assets.resolve, handle)
        return AssetOut(handle=handle, url=url)

    log.info("blog api ready (db=%s)", settings.DB_URL)
    return app


if __name__ == "__main__":
    uvicorn.run("app:create_app", factory=True, host="0.0.0.0", port=get_settings().PORT)
