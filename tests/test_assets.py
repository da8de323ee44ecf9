"""Tests for the local asset store and read-path degradation."""
import mimetypes
import threading
import time
from pathlib import Path

import pytest

from assets import LocalAssetStore, resolve_cover
from errors import AssetUnavailable


@pytest.fixture
def local(tmp_path):
    return LocalAssetStore(tmp_path / "uploads", url_prefix="/uploads/")


class TestLocalAssetStore:
    def test_store_then_resolve(self, local):
        """A stored file resolves to a URL under the prefix."""
        handle = local.store(b"\x89PNG...", "image/png")
        assert handle.endswith(".png")
        assert (local.directory / handle).read_bytes() == b"\x89PNG..."
        assert local.resolve(handle) == f"/uploads/{handle}"

    def test_content_is_not_inspected(self, local):
        """Bytes are kept as-is whatever the declared type."""
        handle = local.store(b"definitely not a jpeg", "image/jpeg")
        assert (local.directory / handle).read_bytes() == b"definitely not a jpeg"

    def test_unknown_type_keeps_declared_type(self, local):
        """A type mimetypes does not know is still served back as declared."""
        handle = local.store(b"x", "image/x-made-up")
        assert handle.endswith(".x-made-up")
        assert mimetypes.guess_type(handle)[0] == "image/x-made-up"

    def test_type_without_subtype_gets_bin_extension(self, local):
        assert local.store(b"x", "").endswith(".bin")

    def test_handles_are_unique(self, local):
        assert local.store(b"a", "image/png") != local.store(b"a", "image/png")

    @pytest.mark.parametrize("handle", ["missing.png", "", "../secret.txt", "a/b.png", ".hidden"])
    def test_unknown_handles_resolve_to_none(self, local, handle):
        assert local.resolve(handle) is None

    def test_storage_failure_is_asset_unavailable(self, tmp_path):
        """An unwritable target surfaces as AssetUnavailable."""
        store = LocalAssetStore(tmp_path / "uploads")
        store.directory.rmdir()
        store.directory.write_text("now a file")
        with pytest.raises(AssetUnavailable):
            store.store(b"x", "image/png")


class TestResolveCover:
    def test_no_handle(self, assets):
        assert resolve_cover(assets, None) is None

    def test_known_handle(self, assets):
        handle = assets.store(b"x", "image/png")
        assert resolve_cover(assets, handle) == f"https://cdn.test/{handle}"

    def test_backend_failure_degrades_to_none(self, assets):
        """Cover images are decorative; an outage must not break the read."""
        handle = assets.store(b"x", "image/png")
        assets.broken = True
        assert resolve_cover(assets, handle) is None


class TestTimeouts:
    """Asset I/O is bounded by the store's timeout."""

    def test_slow_write_times_out(self, tmp_path, monkeypatch):
        """A write that outlives the timeout is reported and its file removed."""
        write_bytes = Path.write_bytes
        written = threading.Event()

        def slow_write(self, data):
            time.sleep(0.3)
            n = write_bytes(self, data)
            written.set()
            return n

        monkeypatch.setattr(Path, "write_bytes", slow_write)
        store = LocalAssetStore(tmp_path / "uploads", timeout=0.05)
        with pytest.raises(AssetUnavailable, match="timed out"):
            store.store(b"img", "image/png")

        assert written.wait(3)
        deadline = time.monotonic() + 3
        while any(store.directory.iterdir()) and time.monotonic() < deadline:
            time.sleep(0.05)
        assert list(store.directory.iterdir()) == []

    def test_slow_resolve_times_out(self, tmp_path, monkeypatch):
        store = LocalAssetStore(tmp_path / "uploads", timeout=0.05)
        handle = store.store(b"img", "image/png")
        is_file = Path.is_file

        def slow_is_file(self):
            time.sleep(0.3)
            return is_file(self)

        monkeypatch.setattr(Path, "is_file", slow_is_file)
        with pytest.raises(AssetUnavailable, match="timed out"):
            store.resolve(handle)

    def test_timed_out_cover_degrades_on_read(self, tmp_path, monkeypatch):
        """A resolve timeout on a read path means no cover, not an error."""
        store = LocalAssetStore(tmp_path / "uploads", timeout=0.05)
        handle = store.store(b"img", "image/png")
        monkeypatch.setattr(Path, "is_file", lambda self: time.sleep(0.3) or True)
        assert resolve_cover(store, handle) is None
