"""Object store clients for uploaded property images."""

import asyncio
import mimetypes
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageSettings, settings
from ..exceptions import ObjectStoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """An object durably written to the object store."""
    key: str
    url: str


class ObjectStore(ABC):
    """Binary blob storage: one upload per call, no transactions across calls."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, folder: str) -> StoredObject:
        """Store one blob under the given folder.

        Args:
            data: Raw file content
            filename: Original file name, used for the extension and content type
            folder: Destination namespace

        Returns:
            StoredObject: Key and durable URL of the stored blob

        Raises:
            ObjectStoreError: If the upload fails
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a stored blob.

        Raises:
            ObjectStoreError: If the delete fails
        """


def build_object_key(filename: str, folder: str) -> str:
    """Key for a new object: <folder>/<uuid><ext>."""
    ext = os.path.splitext(filename)[1].lower()
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{ext}"


class S3ObjectStore(ObjectStore):
    """Object store backed by S3 or any S3-compatible service (e.g. MinIO)."""

    def __init__(self, storage_settings: Optional[StorageSettings] = None, client=None):
        self.config = storage_settings or settings.storage
        self.bucket_name = self.config.bucket_name
        self.public_base = (self.config.public_base or "").rstrip("/")
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            aws_access_key_id=self.config.access_key or None,
            aws_secret_access_key=self.config.secret_key or None,
            region_name=self.config.region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": self.config.addressing_style},
            ),
        )

    def url(self, key: str) -> str:
        """Public URL of an object.

        Priority: configured public base, then endpoint with path-style
        addressing, then the regional AWS virtual-hosted URL.
        """
        if self.public_base:
            return f"{self.public_base}/{key}"
        if self.config.endpoint_url:
            return f"{self.config.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.config.region}.amazonaws.com/{key}"

    def _put(self, data: bytes, filename: str, folder: str) -> StoredObject:
        key = build_object_key(filename, folder)
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=31536000",
                Metadata={"original_name": filename},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed: %s", filename, e)
            raise ObjectStoreError(f"Upload of {filename} failed") from e

        logger.info("Uploaded image %s as %s", filename, key)
        return StoredObject(key=key, url=self.url(key))

    def _delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete of %s failed: %s", key, e)
            raise ObjectStoreError(f"Delete of {key} failed") from e
        logger.info("Deleted image %s", key)

    async def upload(self, data: bytes, filename: str, folder: str) -> StoredObject:
        return await asyncio.to_thread(self._put, data, filename, folder)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)
