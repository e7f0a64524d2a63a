"""
Unit tests for the MinIO client wrapper.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from medintake_lib.db.minio import MinIOClient


class TestMinIOClient:
    """Tests for MinIOClient."""

    @pytest.fixture
    def mock_minio(self):
        """Create a mock Minio client."""
        minio = MagicMock()
        minio.put_object = AsyncMock(return_value=MagicMock(etag="etag-123"))
        minio.bucket_exists = AsyncMock(return_value=False)
        minio.make_bucket = AsyncMock()
        minio.stat_object = AsyncMock()
        return minio

    @pytest.fixture
    def client(self, mock_minio):
        """Create MinIOClient with mocked underlying client."""
        client = MinIOClient(
            endpoint="localhost:9000",
            access_key="test",
            secret_key="test",
        )
        client._client = mock_minio
        return client

    @pytest.mark.asyncio
    async def test_upload_bytes_with_metadata(self, client, mock_minio):
        """Test that bytes are wrapped and metadata is passed through."""
        etag = await client.upload_file(
            bucket_name="bucket",
            object_name="uid/medical_outputs/a.pdf",
            data=b"%PDF-data",
            content_type="application/pdf",
            metadata={"download-token": "tok"},
        )

        assert etag == "etag-123"
        kwargs = mock_minio.put_object.call_args.kwargs
        assert kwargs["bucket_name"] == "bucket"
        assert kwargs["object_name"] == "uid/medical_outputs/a.pdf"
        assert kwargs["length"] == len(b"%PDF-data")
        assert kwargs["data"].read() == b"%PDF-data"
        assert kwargs["content_type"] == "application/pdf"
        assert kwargs["metadata"] == {"download-token": "tok"}

    @pytest.mark.asyncio
    async def test_create_bucket_when_missing(self, client, mock_minio):
        await client.create_bucket("artifacts")

        mock_minio.make_bucket.assert_awaited_once_with("artifacts")

    @pytest.mark.asyncio
    async def test_create_bucket_skips_existing(self, client, mock_minio):
        mock_minio.bucket_exists.return_value = True

        await client.create_bucket("artifacts")

        mock_minio.make_bucket.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_file_info(self, client, mock_minio):
        mock_minio.stat_object.return_value = MagicMock(
            size=10,
            etag="e",
            content_type="application/pdf",
            last_modified=None,
            metadata={"x-amz-meta-download-token": "tok"},
        )

        info = await client.get_file_info("bucket", "a.pdf")

        assert info["size"] == 10
        assert info["metadata"]["x-amz-meta-download-token"] == "tok"
        mock_minio.stat_object.assert_awaited_once_with("bucket", "a.pdf")
