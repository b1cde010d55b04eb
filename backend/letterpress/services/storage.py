"""
Storage service for generated PDFs and customer images.

The backend is chosen once from StorageConfig:
  - local          files under {local_root}/{pdfs|images}/{shop}/
  - s3             S3 (or S3-compatible) bucket, publicly readable objects
  - supabase       Supabase Storage bucket
  - cloudflare-r2  not implemented; every call raises StorageError

Public API:
  LetterStorage(config).store_pdf(data, filename, shop) -> StoredObject
  LetterStorage(config).store_image(remote_url, filename, shop) -> StoredObject
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

import boto3
import requests

from letterpress.config import StorageConfig, StorageKind
from letterpress.db import get_supabase_admin
from letterpress.errors import ExternalFetchError, StorageError

logger = logging.getLogger(__name__)

PDF_FOLDER = "pdfs"
IMAGE_FOLDER = "images"
PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_IMAGE_CONTENT_TYPE = "image/png"


@dataclass(frozen=True)
class StoredObject:
    """Where a stored file can be fetched (url) and the backend's locator (key)."""
    url: str
    key: str


def sanitize_filename(filename: str) -> str:
    """Replace spaces and special chars with underscores."""
    return re.sub(r'[^\w\-.]', '_', filename)


def object_key(folder: str, shop: str, filename: str) -> str:
    return f"{folder}/{sanitize_filename(shop)}/{sanitize_filename(filename)}"


class StorageBackend:
    kind: StorageKind

    def put(self, data: bytes, folder: str, shop: str, filename: str, content_type: str) -> StoredObject:
        raise NotImplementedError


class LocalStorageBackend(StorageBackend):
    """Writes into a directory served as static files under the app's public URL."""

    kind = StorageKind.LOCAL

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def put(self, data: bytes, folder: str, shop: str, filename: str, content_type: str) -> StoredObject:
        key = object_key(folder, shop, filename)
        file_path = os.path.join(self.root, *key.split("/"))

        try:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Failed to write {key} to local storage: {str(e)}") from e

        return StoredObject(url=f"/{key}", key=file_path)


class S3StorageBackend(StorageBackend):
    """Publicly readable objects in an S3 or S3-compatible bucket."""

    kind = StorageKind.S3

    def __init__(self, bucket: Optional[str], region: str, endpoint_url: Optional[str] = None, client=None):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.region, endpoint_url=self.endpoint_url)
        return self._client

    def public_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def put(self, data: bytes, folder: str, shop: str, filename: str, content_type: str) -> StoredObject:
        if not self.bucket:
            raise StorageError("AWS_S3_BUCKET is required for s3 storage")

        key = object_key(folder, shop, filename)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except Exception as e:
            raise StorageError(f"Failed to upload {key} to S3: {str(e)}") from e

        return StoredObject(url=self.public_url(key), key=key)


class SupabaseStorageBackend(StorageBackend):
    """Objects in a public Supabase Storage bucket."""

    kind = StorageKind.SUPABASE

    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_admin()
        return self._client

    def put(self, data: bytes, folder: str, shop: str, filename: str, content_type: str) -> StoredObject:
        key = object_key(folder, shop, filename)
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(
                key,
                data,
                {
                    "content-type": content_type,
                    "upsert": "true",
                },
            )
            url = bucket.get_public_url(key)
        except Exception as e:
            raise StorageError(f"Failed to upload {key} to Supabase Storage: {str(e)}") from e

        return StoredObject(url=url, key=key)


class UnavailableStorageBackend(StorageBackend):
    """A configured backend with no implementation yet."""

    def __init__(self, kind: StorageKind):
        self.kind = kind

    def put(self, data: bytes, folder: str, shop: str, filename: str, content_type: str) -> StoredObject:
        raise StorageError(f"Storage backend '{self.kind.value}' is not implemented")


def build_backend(config: StorageConfig) -> StorageBackend:
    if config.kind == StorageKind.LOCAL:
        return LocalStorageBackend(config.local_root)
    if config.kind == StorageKind.S3:
        return S3StorageBackend(config.s3_bucket, config.s3_region, config.s3_endpoint_url)
    if config.kind == StorageKind.SUPABASE:
        return SupabaseStorageBackend(config.supabase_bucket)
    return UnavailableStorageBackend(config.kind)


class LetterStorage:
    """Stores generated PDFs and customer images in the configured backend."""

    def __init__(self, config: StorageConfig, backend: Optional[StorageBackend] = None):
        self.config = config
        self.backend = backend or build_backend(config)

    def store_pdf(self, data: bytes, filename: str, shop: str) -> StoredObject:
        stored = self.backend.put(data, PDF_FOLDER, shop, filename, PDF_CONTENT_TYPE)
        logger.info(f"Stored PDF {stored.key} ({len(data)} bytes)")
        return stored

    def fetch_image(self, remote_url: str) -> tuple:
        """Download a remote image. Returns (bytes, content_type)."""
        try:
            response = requests.get(remote_url, timeout=self.config.fetch_timeout)
        except requests.RequestException as e:
            raise ExternalFetchError(f"Failed to download image {remote_url}: {str(e)}") from e

        if not response.ok:
            raise ExternalFetchError(
                f"Failed to download image {remote_url}: {response.status_code} {response.reason}"
            )

        content_type = response.headers.get("Content-Type", DEFAULT_IMAGE_CONTENT_TYPE)
        return response.content, content_type.split(";")[0].strip() or DEFAULT_IMAGE_CONTENT_TYPE

    def store_image(self, remote_url: str, filename: str, shop: str) -> StoredObject:
        data, content_type = self.fetch_image(remote_url)
        stored = self.backend.put(data, IMAGE_FOLDER, shop, filename, content_type)
        logger.info(f"Stored image {stored.key} from {remote_url}")
        return stored
