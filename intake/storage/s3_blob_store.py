from typing import ClassVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from intake.documents.exceptions import StorageDeleteError, StorageWriteError
from intake.logging.logger import Log
from intake.storage.base import BaseBlobStore, public_url_for


class S3BlobStore(BaseBlobStore):
    """Blob store backed by an S3-compatible bucket.

    Uploads are single attempts: botocore retries are disabled so that a
    rejected write surfaces immediately as StorageWriteError.
    """

    CACHE_CONTROL: ClassVar[str] = "max-age=3600"
    _MISSING_CODES: ClassVar[frozenset[str]] = frozenset({"404", "NoSuchKey", "NotFound"})

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        endpoint_url: str = "",
        access_key_id: str = "",
        secret_access_key: str = "",
        timeout_seconds: int = 30,
        public_base_url: str = "",
        presign_expiry_seconds: int = 0,
    ) -> None:
        self._bucket = bucket
        self._public_base_url = public_base_url
        self._presign_expiry_seconds = presign_expiry_seconds
        self._client = boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            config=Config(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"total_max_attempts": 1, "mode": "standard"},
            ),
        )

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=self.CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageWriteError(f"Failed to upload {key}: {exc}") from exc
        return key

    def get_public_url(self, stored_path: str) -> str | None:
        url = public_url_for(self._public_base_url, self._bucket, stored_path)
        if url is not None or self._presign_expiry_seconds <= 0:
            return url
        try:
            return self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self._bucket, "Key": stored_path},
                ExpiresIn=self._presign_expiry_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            Log.warning(f"Could not presign URL: {exc}", path=stored_path)
            return None

    def remove(self, stored_path: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=stored_path)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in self._MISSING_CODES:
                Log.warning("Blob already absent, nothing to remove", path=stored_path)
                return
            raise StorageDeleteError(f"Failed to remove {stored_path}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageDeleteError(f"Failed to remove {stored_path}: {exc}") from exc
