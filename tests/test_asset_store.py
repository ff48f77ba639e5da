"""Tests for the filesystem asset store."""

from pathlib import Path
from unittest.mock import patch

import pytest

from soundshelf_api.api.exceptions import StorageError
from soundshelf_api.services.asset_store import LocalAssetStore


class TestLocalAssetStore:
    """Tests for LocalAssetStore."""

    def test_put_writes_and_returns_url(self, asset_store: LocalAssetStore) -> None:
        url = asset_store.put("songs/song_1.mp3", b"audio", "audio/mpeg")

        assert url == "/media/songs/song_1.mp3"
        assert (asset_store.root / "songs" / "song_1.mp3").read_bytes() == b"audio"
        assert asset_store.exists("songs/song_1.mp3")

    def test_put_overwrites(self, asset_store: LocalAssetStore) -> None:
        """Writing the same key twice keeps one blob with the new content."""
        asset_store.put("covers/song_1.jpg", b"old", "image/jpeg")
        asset_store.put("covers/song_1.jpg", b"new", "image/jpeg")

        files = list((asset_store.root / "covers").iterdir())
        assert [f.name for f in files] == ["song_1.jpg"]
        assert files[0].read_bytes() == b"new"

    def test_delete(self, asset_store: LocalAssetStore) -> None:
        asset_store.put("songs/song_1.mp3", b"audio", "audio/mpeg")

        asset_store.delete("songs/song_1.mp3")

        assert not asset_store.exists("songs/song_1.mp3")

    def test_delete_missing_is_noop(self, asset_store: LocalAssetStore) -> None:
        asset_store.delete("songs/never-stored.mp3")

    def test_base_url_trailing_slash(self, tmp_path: Path) -> None:
        store = LocalAssetStore(tmp_path, "https://cdn.example.com/assets/")
        assert store.public_url("a/b.jpg") == "https://cdn.example.com/assets/a/b.jpg"

    @pytest.mark.parametrize("key", ["../escape.mp3", "/abs/path.mp3", ""])
    def test_rejects_unsafe_keys(self, asset_store: LocalAssetStore, key: str) -> None:
        with pytest.raises(StorageError):
            asset_store.put(key, b"x", "audio/mpeg")

    def test_write_failure_is_storage_error(
        self, asset_store: LocalAssetStore
    ) -> None:
        with patch(
            "soundshelf_api.services.asset_store.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(StorageError) as exc_info:
                asset_store.put("songs/song_1.mp3", b"audio", "audio/mpeg")

        assert exc_info.value.operation == "put"
        assert not asset_store.exists("songs/song_1.mp3")
        # No temp file left behind
        assert list((asset_store.root / "songs").iterdir()) == []
