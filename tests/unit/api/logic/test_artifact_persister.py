"""
Unit tests for ArtifactPersister and the download URL helpers.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from api.logic.artifact_persister import (
    ACCESS_TOKEN_METADATA_KEY,
    CACHE_CONTROL,
    ArtifactPersister,
    artifact_path,
    build_download_url,
    parse_download_url,
)
from api.logic.exceptions import PersistenceFailureError
from api.logic.models import ConversionResult

BASE_URL = "https://storage.test/v0/b"
BUCKET = "medintake-artifacts"
FIXED_EPOCH = 1_700_000_000.123


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock()
    storage.upload_file = AsyncMock(return_value="etag-1")
    storage.get_file_info = AsyncMock()
    return storage


@pytest.fixture
def persister(mock_storage: MagicMock) -> ArtifactPersister:
    return ArtifactPersister(
        storage=mock_storage,
        bucket=BUCKET,
        download_base_url=BASE_URL,
        clock=lambda: FIXED_EPOCH,
    )


class TestDownloadUrl:
    """Tests for the path and URL helpers."""

    def test_artifact_path(self) -> None:
        assert artifact_path("uid-1", "medical_1.pdf") == "uid-1/medical_outputs/medical_1.pdf"

    def test_path_is_percent_encoded(self) -> None:
        url = build_download_url(BASE_URL, BUCKET, "uid-1/medical_outputs/a b.pdf", "tok")

        assert url == (
            "https://storage.test/v0/b/medintake-artifacts/o/"
            "uid-1%2Fmedical_outputs%2Fa%20b.pdf?alt=media&token=tok"
        )

    def test_trailing_slash_on_base(self) -> None:
        url = build_download_url(BASE_URL + "/", BUCKET, "p.pdf", "tok")

        assert url.startswith(f"{BASE_URL}/{BUCKET}/o/")

    def test_parse_recovers_path_and_token(self) -> None:
        path = "uid-1/medical_outputs/medical_1.pdf"
        url = build_download_url(BASE_URL, BUCKET, path, "4b1d-token")

        assert parse_download_url(url) == (path, "4b1d-token")

    def test_parse_rejects_foreign_url(self) -> None:
        with pytest.raises(ValueError):
            parse_download_url("https://example.com/some/file.pdf")


class TestArtifactPersister:
    """Tests for ArtifactPersister."""

    @pytest.mark.asyncio
    async def test_persist_writes_under_owner_namespace(
        self,
        persister: ArtifactPersister,
        mock_storage: MagicMock,
    ) -> None:
        """Test path, metadata and returned reference."""
        result = ConversionResult(data=b"%PDF" + b"0" * 200)

        ref = await persister.persist(result, "uid-123")

        assert ref.bucket == BUCKET
        assert ref.filename.startswith("medical_1700000000123_")
        assert ref.filename.endswith(".pdf")
        assert ref.storage_path == f"uid-123/medical_outputs/{ref.filename}"
        assert ref.access_token

        kwargs = mock_storage.upload_file.call_args.kwargs
        assert kwargs["bucket_name"] == BUCKET
        assert kwargs["object_name"] == ref.storage_path
        assert kwargs["data"] == result.data
        assert kwargs["content_type"] == "application/pdf"
        assert kwargs["metadata"] == {
            "Cache-Control": CACHE_CONTROL,
            ACCESS_TOKEN_METADATA_KEY: ref.access_token,
        }

    @pytest.mark.asyncio
    async def test_url_resolves_to_stored_object(
        self,
        persister: ArtifactPersister,
    ) -> None:
        ref = await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")

        assert parse_download_url(ref.download_url) == (ref.storage_path, ref.access_token)

    @pytest.mark.asyncio
    async def test_each_artifact_gets_a_fresh_token(
        self,
        persister: ArtifactPersister,
    ) -> None:
        first = await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")
        second = await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")

        assert first.access_token != second.access_token

    @pytest.mark.asyncio
    async def test_same_millisecond_uploads_do_not_collide(
        self,
        persister: ArtifactPersister,
        mock_storage: MagicMock,
    ) -> None:
        """Test two artifacts stored within one clock tick keep distinct paths."""
        first = await persister.persist(ConversionResult(data=b"x" * 200), "uid")
        second = await persister.persist(ConversionResult(data=b"y" * 200), "uid")

        assert first.storage_path != second.storage_path
        written = [c.kwargs["object_name"] for c in mock_storage.upload_file.call_args_list]
        assert written == [first.storage_path, second.storage_path]

    @pytest.mark.asyncio
    async def test_falls_back_to_global_storage(self, mock_storage: MagicMock) -> None:
        persister = ArtifactPersister(bucket=BUCKET, download_base_url=BASE_URL)

        with patch("api.logic.artifact_persister.get_minio", return_value=mock_storage):
            ref = await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")

        assert mock_storage.upload_file.call_args.kwargs["object_name"] == ref.storage_path

    @pytest.mark.asyncio
    async def test_uninitialized_storage_is_a_persistence_failure(self) -> None:
        persister = ArtifactPersister(bucket=BUCKET, download_base_url=BASE_URL)

        with patch(
            "api.logic.artifact_persister.get_minio",
            side_effect=RuntimeError("MinIO client not initialized. Call init_minio() first."),
        ):
            with pytest.raises(PersistenceFailureError):
                await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")

    @pytest.mark.asyncio
    async def test_storage_failure(
        self,
        persister: ArtifactPersister,
        mock_storage: MagicMock,
    ) -> None:
        mock_storage.upload_file.side_effect = ConnectionError("minio down")

        with pytest.raises(PersistenceFailureError) as exc_info:
            await persister.persist(ConversionResult(data=b"x" * 200), "uid-123")

        assert exc_info.value.status_code == 500
        assert exc_info.value.storage_path.startswith("uid-123/medical_outputs/")

    @pytest.mark.asyncio
    async def test_read_access_token_from_amz_metadata(
        self,
        persister: ArtifactPersister,
        mock_storage: MagicMock,
    ) -> None:
        mock_storage.get_file_info.return_value = {
            "size": 200,
            "metadata": {"X-Amz-Meta-Download-Token": "tok-9", "Content-Type": "application/pdf"},
        }

        token = await persister.read_access_token("uid-123/medical_outputs/a.pdf")

        assert token == "tok-9"
        mock_storage.get_file_info.assert_called_once_with(
            BUCKET, "uid-123/medical_outputs/a.pdf"
        )

    @pytest.mark.asyncio
    async def test_read_access_token_missing(
        self,
        persister: ArtifactPersister,
        mock_storage: MagicMock,
    ) -> None:
        mock_storage.get_file_info.return_value = {"size": 200, "metadata": {}}

        assert await persister.read_access_token("uid-123/medical_outputs/a.pdf") is None
