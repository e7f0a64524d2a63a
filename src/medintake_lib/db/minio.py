"""
Artifact object storage on MinIO/S3.

Generated PDFs are written once and never modified, so the client only
exposes what that lifecycle needs: bucket bootstrap, a single-shot upload
with user metadata, and a metadata read-back.
"""

import io
from typing import Any

from miniopy_async import Minio


class MinIOClient:
    """
    Async wrapper around miniopy_async.Minio.

    Usage:
        storage = MinIOClient(endpoint="localhost:9000", access_key="...", secret_key="...")
        await storage.init()
        await storage.create_bucket("medintake-artifacts")
        await storage.upload_file("medintake-artifacts", "uid/medical_outputs/a.pdf", pdf)
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ):
        """
        Initialize the client. No connection is made until init().

        Args:
            endpoint: Server address as host:port.
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS.
            region: Bucket region, if the server requires one.
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )

    async def init(self) -> None:
        """Fail fast if the server is unreachable or credentials are wrong."""
        await self._client.list_buckets()

    async def bucket_exists(self, bucket_name: str) -> bool:
        return await self._client.bucket_exists(bucket_name)

    async def create_bucket(self, bucket_name: str) -> None:
        """Create the bucket unless it is already there."""
        if await self.bucket_exists(bucket_name):
            return
        await self._client.make_bucket(bucket_name)

    async def upload_file(
        self,
        bucket_name: str,
        object_name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Write an object in one request.

        Args:
            bucket_name: Target bucket.
            object_name: Object path inside the bucket.
            data: Complete object content.
            content_type: MIME type stored with the object.
            metadata: Headers such as Cache-Control, or custom keys that the
                server stores as x-amz-meta-*.

        Returns:
            ETag of the stored object.
        """
        result = await self._client.put_object(
            bucket_name=bucket_name,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
            metadata=metadata,
        )
        return result.etag

    async def get_file_info(self, bucket_name: str, object_name: str) -> dict[str, Any]:
        """Stat an object; metadata keys come back as the server sends them."""
        stat = await self._client.stat_object(bucket_name, object_name)
        return {
            "size": stat.size,
            "etag": stat.etag,
            "content_type": stat.content_type,
            "last_modified": stat.last_modified,
            "metadata": dict(stat.metadata or {}),
        }


_minio_client: MinIOClient | None = None


def get_minio() -> MinIOClient:
    """Get the global MinIO client instance."""
    if _minio_client is None:
        raise RuntimeError("MinIO client not initialized. Call init_minio() first.")
    return _minio_client


async def init_minio(
    endpoint: str,
    access_key: str,
    secret_key: str,
    secure: bool = False,
) -> MinIOClient:
    """Create the global client and verify connectivity."""
    global _minio_client
    client = MinIOClient(
        endpoint=endpoint,
        access_key=access_key,
        secret_key=secret_key,
        secure=secure,
    )
    await client.init()
    _minio_client = client
    return _minio_client


def close_minio() -> None:
    """Drop the global client; it holds no open connections."""
    global _minio_client
    _minio_client = None
