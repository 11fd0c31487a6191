"""
Blob storage backends for patient attachments.

Two interchangeable backends implement ``BlobStorage``: the local filesystem
(aiofiles) for development and tests, and an S3-compatible bucket (aioboto3)
for production. Keys are relative paths inside a named bucket.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Union, cast
from urllib.parse import urlencode

import aiofiles
import aiofiles.os
import aioboto3  # type: ignore

from core import config
from core.constants import PATIENT_FILES_BUCKET

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client  # type: ignore

logger = logging.getLogger(__name__)

ImageTransform = Dict[str, Union[int, str]]


class BlobStorageError(Exception):
    """Upload or removal failure reported by a blob storage backend."""


class BlobStorage(ABC):
    """Bucket-scoped blob storage."""

    def __init__(self, bucket: str, public_base_url: str):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` at ``path`` and return the path."""

    @abstractmethod
    async def remove(self, paths: List[str]) -> None:
        """Remove the given paths. Missing paths are not an error."""

    @abstractmethod
    def get_public_url(self, path: str, transform: Optional[ImageTransform] = None) -> str:
        """Public URL of ``path``, optionally as a resized image rendition."""


def _check_path(path: str) -> str:
    normalized = path.strip().lstrip("/")
    if not normalized or ".." in normalized.split("/"):
        raise BlobStorageError(f"Invalid blob path: {path!r}")
    return normalized


class LocalBlobStorage(BlobStorage):
    """
    Stores blobs under ``{root_dir}/{bucket}/{path}``.

    Transforms are passed through as query parameters; the static file server
    ignores them and serves the original bytes.
    """

    def __init__(self, root_dir: str, public_base_url: str, bucket: str = PATIENT_FILES_BUCKET):
        super().__init__(bucket, public_base_url)
        self.root_dir = root_dir

    def _local_path(self, path: str) -> str:
        return os.path.join(self.root_dir, self.bucket, *_check_path(path).split("/"))

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        local_path = self._local_path(path)
        try:
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            async with aiofiles.open(local_path, 'wb') as out_file:
                await out_file.write(content)
        except OSError as e:
            logger.exception(f"Failed to write local blob {local_path}: {e}")
            raise BlobStorageError(str(e)) from e
        logger.info(f"Stored blob {self.bucket}/{path} ({len(content)} bytes, {content_type})")
        return path

    async def remove(self, paths: List[str]) -> None:
        for path in paths:
            local_path = self._local_path(path)
            if not os.path.exists(local_path):
                continue
            try:
                await aiofiles.os.remove(local_path)
            except OSError as e:
                logger.exception(f"Failed to delete local blob {local_path}: {e}")
                raise BlobStorageError(str(e)) from e

    def get_public_url(self, path: str, transform: Optional[ImageTransform] = None) -> str:
        url = f"{self.public_base_url}/{self.bucket}/{_check_path(path)}"
        if transform:
            url = f"{url}?{urlencode(transform)}"
        return url


class S3BlobStorage(BlobStorage):
    """
    S3-compatible bucket storage.

    ``public_base_url`` is the storage API root (for a hosted project,
    ``https://<project>.supabase.co/storage/v1``). Plain files are served from
    ``/object/public/...`` and transformed images from
    ``/render/image/public/...``.
    """

    def __init__(
        self,
        public_base_url: str,
        bucket: str = PATIENT_FILES_BUCKET,
        endpoint_url: Optional[str] = None,
        region: str = "us-east-1",
        access_key: str = "",
        secret_key: str = ""
    ):
        super().__init__(bucket, public_base_url)
        self.endpoint_url = endpoint_url
        self.region = region
        self.access_key = access_key
        self.secret_key = secret_key
        self._session = aioboto3.Session()

    def _client(self):  # type: ignore
        return self._session.client(  # type: ignore
            's3',
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            endpoint_url=self.endpoint_url
        )

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        key = _check_path(path)
        try:
            async with self._client() as s3_client:  # type: ignore
                s3 = cast("S3Client", s3_client)
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type or 'application/octet-stream'
                )
        except Exception as e:
            logger.exception(f"Failed to upload S3 object {key}: {e}")
            raise BlobStorageError(str(e)) from e
        logger.info(f"Stored blob {self.bucket}/{key} ({len(content)} bytes, {content_type})")
        return key

    async def remove(self, paths: List[str]) -> None:
        if not paths:
            return
        keys = [_check_path(path) for path in paths]
        try:
            async with self._client() as s3_client:  # type: ignore
                s3 = cast("S3Client", s3_client)
                await s3.delete_objects(
                    Bucket=self.bucket,
                    Delete={'Objects': [{'Key': key} for key in keys], 'Quiet': True}
                )
        except Exception as e:
            logger.exception(f"Failed to delete S3 objects {keys}: {e}")
            raise BlobStorageError(str(e)) from e

    def get_public_url(self, path: str, transform: Optional[ImageTransform] = None) -> str:
        key = _check_path(path)
        if transform:
            return f"{self.public_base_url}/render/image/public/{self.bucket}/{key}?{urlencode(transform)}"
        return f"{self.public_base_url}/object/public/{self.bucket}/{key}"


def build_blob_storage() -> BlobStorage:
    """Create the backend selected by ``STORAGE_BACKEND``."""
    if config.STORAGE_BACKEND == "s3":
        logger.info(f"Using S3 blob storage at {config.S3_ENDPOINT_URL or 'AWS'}")
        return S3BlobStorage(
            public_base_url=config.STORAGE_PUBLIC_URL,
            endpoint_url=config.S3_ENDPOINT_URL,
            region=config.S3_REGION,
            access_key=config.S3_ACCESS_KEY,
            secret_key=config.S3_SECRET_KEY,
        )
    logger.info(f"Using local blob storage in {config.STORAGE_LOCAL_DIR}")
    return LocalBlobStorage(config.STORAGE_LOCAL_DIR, config.STORAGE_PUBLIC_URL)
