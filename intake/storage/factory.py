from pathlib import Path

from intake.config.settings import Settings
from intake.storage.base import BaseBlobStore
from intake.storage.local_blob_store import LocalBlobStore
from intake.storage.s3_blob_store import S3BlobStore


class BlobStoreFactory:
    """Creates the blob store selected by ``storage_disk``."""

    SUPPORTED_DISKS: tuple[str, ...] = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        disk = settings.storage_disk.lower()
        if disk == "local":
            return LocalBlobStore(
                root=Path(settings.storage_local_root),
                bucket=settings.storage_bucket,
                public_base_url=settings.storage_public_base_url,
            )
        if disk == "s3":
            return S3BlobStore(
                bucket=settings.storage_bucket,
                region=settings.storage_region,
                endpoint_url=settings.storage_endpoint_url,
                access_key_id=settings.storage_access_key_id,
                secret_access_key=settings.storage_secret_access_key,
                timeout_seconds=settings.storage_timeout_seconds,
                public_base_url=settings.storage_public_base_url,
                presign_expiry_seconds=settings.storage_presign_expiry_seconds,
            )
        raise ValueError(
            f"Unknown storage disk '{disk}'. Choose from: {list(cls.SUPPORTED_DISKS)}"
        )
