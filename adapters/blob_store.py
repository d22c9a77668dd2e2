"""
Binary object store adapters.

S3BlobStore talks to any S3-compatible service through boto3; the SDK is
synchronous, so calls are pushed to a worker thread with asyncio.to_thread.
InMemoryBlobStore keeps objects in a dict for tests and local development.
"""

import asyncio
import hashlib
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from common.exceptions import BlobStoreException
from common.logging import get_logger

logger = get_logger("blob_store")

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class BlobInfo:
    key: str
    size: int
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
    etag: Optional[str] = None


@dataclass
class BlobObject:
    info: BlobInfo
    chunks: Iterator[bytes] = field(repr=False, default_factory=lambda: iter(()))

    def iter_chunks(self) -> Iterator[bytes]:
        return self.chunks


class BaseBlobStore(ABC):
    """Abstract object store keyed by string."""

    def __init__(self, key_prefix: str = "pdfs"):
        self.key_prefix = key_prefix.strip("/")

    def blob_key(self, pdf_id: str) -> str:
        """A record id maps to exactly one blob key."""
        return f"{self.key_prefix}/{pdf_id}.pdf"

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        content_disposition: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> BlobInfo:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[BlobObject]:
        """Return the object with a chunk iterator, or None when absent."""
        pass

    @abstractmethod
    async def head(self, key: str) -> Optional[BlobInfo]:
        """Metadata-only lookup; None when absent."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def create_presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        pass

    @abstractmethod
    async def is_healthy(self) -> bool:
        pass


class S3BlobStore(BaseBlobStore):
    """Blob store backed by Amazon S3 or an S3-compatible endpoint."""

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        key_prefix: str = "pdfs",
        client=None,
    ):
        super().__init__(key_prefix)
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self._client = client
        if self._client is None:
            self._initialize_client()

    def _initialize_client(self):
        import boto3

        self._client = boto3.client("s3", region_name=self.region, endpoint_url=self.endpoint_url)
        logger.info(f"S3 blob store client initialized for bucket {self.bucket}")

    @staticmethod
    def _is_not_found(error) -> bool:
        code = str(error.response.get("Error", {}).get("Code", ""))
        return code in ("404", "NoSuchKey", "NotFound")

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        content_disposition: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> BlobInfo:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
            "Metadata": metadata or {},
        }
        if content_disposition:
            params["ContentDisposition"] = content_disposition

        try:
            response = await asyncio.to_thread(self._client.put_object, **params)
        except Exception as e:
            logger.error(f"S3 put_object failed for {key}: {e}", exc_info=True)
            raise BlobStoreException(detail="Failed to store file", operation="put", context={"key": key})

        return BlobInfo(
            key=key,
            size=len(data),
            content_type=content_type,
            content_disposition=content_disposition,
            etag=(response.get("ETag") or "").strip('"') or None,
        )

    async def get(self, key: str) -> Optional[BlobObject]:
        from botocore.exceptions import ClientError

        try:
            response = await asyncio.to_thread(self._client.get_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                return None
            logger.error(f"S3 get_object failed for {key}: {e}")
            raise BlobStoreException(detail="Failed to read file", operation="get", context={"key": key})
        except Exception as e:
            logger.error(f"S3 get_object failed for {key}: {e}")
            raise BlobStoreException(detail="Failed to read file", operation="get", context={"key": key})

        info = BlobInfo(
            key=key,
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType"),
            content_disposition=response.get("ContentDisposition"),
            etag=(response.get("ETag") or "").strip('"') or None,
        )
        return BlobObject(info=info, chunks=response["Body"].iter_chunks(DEFAULT_CHUNK_SIZE))

    async def head(self, key: str) -> Optional[BlobInfo]:
        from botocore.exceptions import ClientError

        try:
            response = await asyncio.to_thread(self._client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                return None
            logger.error(f"S3 head_object failed for {key}: {e}")
            raise BlobStoreException(detail="Failed to inspect file", operation="head", context={"key": key})
        except Exception as e:
            logger.error(f"S3 head_object failed for {key}: {e}")
            raise BlobStoreException(detail="Failed to inspect file", operation="head", context={"key": key})

        return BlobInfo(
            key=key,
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType"),
            content_disposition=response.get("ContentDisposition"),
            etag=(response.get("ETag") or "").strip('"') or None,
        )

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=key)
        except Exception as e:
            logger.error(f"S3 delete_object failed for {key}: {e}")
            raise BlobStoreException(detail="Failed to delete file", operation="delete", context={"key": key})

    async def create_presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except Exception as e:
            logger.error(f"Presigned URL generation failed for {key}: {e}")
            raise BlobStoreException(
                detail="Failed to create upload URL", operation="presign", context={"key": key}
            )

    async def is_healthy(self) -> bool:
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning(f"S3 bucket check failed: {e}")
            return False


class InMemoryBlobStore(BaseBlobStore):
    """
    Dict-backed blob store. Presigned URLs are opaque `memory://` strings;
    tests simulate the client-side transfer by calling `put` directly.
    """

    def __init__(self, key_prefix: str = "pdfs", bucket: str = "local"):
        super().__init__(key_prefix)
        self.bucket = bucket
        self._objects: Dict[str, tuple] = {}
        self.lock = threading.Lock()

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        content_disposition: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> BlobInfo:
        info = BlobInfo(
            key=key,
            size=len(data),
            content_type=content_type,
            content_disposition=content_disposition,
            etag=hashlib.md5(data).hexdigest(),
        )
        with self.lock:
            self._objects[key] = (bytes(data), info)
        return info

    async def get(self, key: str) -> Optional[BlobObject]:
        with self.lock:
            entry = self._objects.get(key)
        if entry is None:
            return None
        data, info = entry
        chunks = (data[i:i + DEFAULT_CHUNK_SIZE] for i in range(0, len(data), DEFAULT_CHUNK_SIZE))
        return BlobObject(info=info, chunks=chunks)

    async def head(self, key: str) -> Optional[BlobInfo]:
        with self.lock:
            entry = self._objects.get(key)
        return entry[1] if entry else None

    async def delete(self, key: str) -> None:
        with self.lock:
            self._objects.pop(key, None)

    async def create_presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        return f"memory://{self.bucket}/{key}?expires_in={expires_in}"

    async def is_healthy(self) -> bool:
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._objects


def create_blob_store(settings) -> Optional[BaseBlobStore]:
    """Build the configured blob store; None when the remote bucket is not configured."""
    if settings.is_memory_backend():
        return InMemoryBlobStore(key_prefix=settings.s3_key_prefix)
    if not settings.s3_bucket:
        logger.warning("S3_BUCKET is not set; blob storage is unavailable")
        return None
    return S3BlobStore(
        bucket=settings.s3_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        key_prefix=settings.s3_key_prefix,
    )
