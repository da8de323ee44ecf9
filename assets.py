"""
Asset Reference: opaque handles for uploaded binary content.

The post store only ever talks to the ``AssetStore`` protocol, so the backend
can be the local uploads folder (default) or anything else that can turn
bytes into a handle and a handle into a URL.
"""
import atexit
import mimetypes
import re
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, Optional, Protocol, TypeVar

from errors import AssetUnavailable
from logger import get_logger

log = get_logger("assets")

T = TypeVar("T")

_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="assets")
atexit.register(_pool.shutdown, wait=False, cancel_futures=True)


class AssetStore(Protocol):
    """Interface for a binary content store."""

    def store(self, data: bytes, content_type: str) -> str:
        """Persist ``data`` and return an opaque handle.

        Raises:
            AssetUnavailable: the backend could not take the content.
        """
        ...

    def resolve(self, handle: str) -> Optional[str]:
        """Return a fetchable URL for ``handle``, or None if it is unknown.

        Raises:
            AssetUnavailable: the backend could not be reached.
        """
        ...


def _bounded(fn: Callable[[], T], timeout: float, what: str,
             on_late: Optional[Callable[[], None]] = None) -> T:
    future = _pool.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        # a running worker cannot be stopped; on_late runs once it finishes
        if not future.cancel() and on_late is not None:
            future.add_done_callback(lambda _f: on_late())
        raise AssetUnavailable(f"{what} timed out after {timeout:g}s")


def extension_for(content_type: str) -> str:
    """File extension for a declared type, registering types mimetypes lacks.

    The upload is served back by extension, so an unknown type such as
    ``image/avif`` gets ``.avif`` and is added to the mimetypes map.
    """
    ctype = (content_type or "").split(";")[0].strip().lower()
    ext = mimetypes.guess_extension(ctype)
    if ext:
        return ext
    _, _, subtype = ctype.partition("/")
    subtype = re.sub(r"[^a-z0-9.+-]", "", subtype).strip(".")
    if not subtype:
        return ".bin"
    ext = f".{subtype}"
    mimetypes.add_type(ctype, ext)
    return ext


class LocalAssetStore:
    """Keeps uploads as files in one directory, served under ``url_prefix``."""

    def __init__(self, directory: Path, url_prefix: str = "/uploads", timeout: float = 10.0):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")
        self.timeout = timeout
        self.directory.mkdir(parents=True, exist_ok=True)

    def store(self, data: bytes, content_type: str) -> str:
        name = f"{uuid.uuid4().hex}{extension_for(content_type)}"
        path = self.directory / name

        def discard():
            path.unlink(missing_ok=True)
            log.warning("discarded late asset write %s", name)

        try:
            _bounded(lambda: path.write_bytes(data), self.timeout, "asset store", on_late=discard)
        except OSError as e:
            raise AssetUnavailable(f"Could not store asset: {e}") from e
        log.info("stored asset %s (%s, %d bytes)", name, content_type, len(data))
        return name

    def resolve(self, handle: str) -> Optional[str]:
        if not handle or "/" in handle or "\\" in handle or handle.startswith("."):
            return None
        try:
            exists = _bounded((self.directory / handle).is_file, self.timeout, "asset resolve")
        except OSError as e:
            raise AssetUnavailable(f"Could not resolve asset {handle}: {e}") from e
        return f"{self.url_prefix}/{handle}" if exists else None


def resolve_cover(assets: AssetStore, handle: Optional[str]) -> Optional[str]:
    """URL for a cover image on read paths; failures degrade to no cover."""
    if not handle:
        return None
    try:
        return assets.resolve(handle)
    except AssetUnavailable as e:
        log.warning("cover %s unavailable, serving without it: %s", handle, e)
        return None
