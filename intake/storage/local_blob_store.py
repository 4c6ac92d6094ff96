from pathlib import Path

from intake.documents.exceptions import StorageDeleteError, StorageWriteError
from intake.logging.logger import Log
from intake.storage.base import BaseBlobStore, public_url_for


class LocalBlobStore(BaseBlobStore):
    """Stores blobs on local disk under {root}/{bucket}/{key}."""

    def __init__(self, root: Path, bucket: str, public_base_url: str = "") -> None:
        self._bucket_root = (root / bucket).resolve()
        self._bucket = bucket
        self._public_base_url = public_base_url

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        path = self._resolve_path(key)
        if path is None:
            raise StorageWriteError(f"Key escapes the bucket root: {key}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise StorageWriteError(f"Object already exists: {key}") from exc
        except OSError as exc:
            raise StorageWriteError(f"Failed to write {key}: {exc}") from exc
        Log.debug(f"Stored {len(data)} bytes on local disk", key=key, content_type=content_type)
        return key

    def get_public_url(self, stored_path: str) -> str | None:
        return public_url_for(self._public_base_url, self._bucket, stored_path)

    def remove(self, stored_path: str) -> None:
        path = self._resolve_path(stored_path)
        if path is None:
            raise StorageDeleteError(f"Path escapes the bucket root: {stored_path}")
        try:
            path.unlink()
        except FileNotFoundError:
            Log.warning("Blob already absent, nothing to remove", path=stored_path)
        except OSError as exc:
            raise StorageDeleteError(f"Failed to remove {stored_path}: {exc}") from exc

    def _resolve_path(self, key: str) -> Path | None:
        path = (self._bucket_root / key).resolve()
        if not path.is_relative_to(self._bucket_root):
            return None
        return path
