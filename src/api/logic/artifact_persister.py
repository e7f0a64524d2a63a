"""
Artifact persistence in object storage.

Writes the converted document under an owner-namespaced path and mints a
capability token stored in the object's metadata. The retrieval URL is built
from bucket, percent-encoded path and token alone; no signing key is involved.
"""

import logging
import time
import uuid
from typing import Callable
from urllib.parse import parse_qs, quote, unquote, urlsplit

from api.logic.exceptions import PersistenceFailureError
from api.logic.models import ArtifactReference, ConversionResult
from medintake_lib.db.minio import MinIOClient, get_minio

logger = logging.getLogger(__name__)

ACCESS_TOKEN_METADATA_KEY = "download-token"
OUTPUT_FOLDER = "medical_outputs"
ARTIFACT_CONTENT_TYPE = "application/pdf"
CACHE_CONTROL = "private, max-age=3600"


def artifact_path(owner_id: str, filename: str) -> str:
    """Storage path of an owner's artifact."""
    return f"{owner_id}/{OUTPUT_FOLDER}/{filename}"


def build_download_url(base_url: str, bucket: str, storage_path: str, token: str) -> str:
    """
    Build the retrieval URL for a stored artifact.

    Args:
        base_url: Download gateway root, e.g. https://host/v0/b
        bucket: Bucket name.
        storage_path: Object path inside the bucket.
        token: Capability token stored with the object.

    Returns:
        Fully qualified URL.
    """
    encoded_path = quote(storage_path, safe="")
    return f"{base_url.rstrip('/')}/{bucket}/o/{encoded_path}?alt=media&token={token}"


def parse_download_url(url: str) -> tuple[str, str]:
    """
    Recover (storage_path, token) from a URL made by build_download_url.

    Raises:
        ValueError: If the URL has no object path or token.
    """
    parts = urlsplit(url)
    _, sep, encoded_path = parts.path.partition("/o/")
    tokens = parse_qs(parts.query).get("token")
    if not sep or not encoded_path or not tokens:
        raise ValueError(f"Not an artifact download URL: {url}")
    return unquote(encoded_path), tokens[0]


class ArtifactPersister:
    """Writes conversion results to MinIO and mints their references."""

    def __init__(
        self,
        bucket: str,
        download_base_url: str,
        storage: MinIOClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize persister.

        Args:
            bucket: Target bucket.
            download_base_url: Root of retrieval URLs.
            storage: Object storage client (uses global if not provided).
            clock: Source of epoch seconds used in generated filenames.
        """
        self._storage = storage
        self._bucket = bucket
        self._download_base_url = download_base_url
        self._clock = clock

    @property
    def storage(self) -> MinIOClient:
        """Get MinIO client."""
        if self._storage is not None:
            return self._storage
        return get_minio()

    def _generate_filename(self) -> str:
        # millisecond stamps alone collide under concurrent uploads
        return f"medical_{int(self._clock() * 1000)}_{uuid.uuid4().hex[:8]}.pdf"

    async def persist(self, result: ConversionResult, owner_id: str) -> ArtifactReference:
        """
        Store the artifact and return its reference.

        Args:
            result: Converted document.
            owner_id: Verified identity of the requester.

        Returns:
            ArtifactReference including the retrieval URL.

        Raises:
            PersistenceFailureError: If storage is unavailable or the write fails.
        """
        filename = self._generate_filename()
        storage_path = artifact_path(owner_id, filename)
        token = str(uuid.uuid4())

        try:
            await self.storage.upload_file(
                bucket_name=self._bucket,
                object_name=storage_path,
                data=result.data,
                content_type=ARTIFACT_CONTENT_TYPE,
                metadata={
                    "Cache-Control": CACHE_CONTROL,
                    ACCESS_TOKEN_METADATA_KEY: token,
                },
            )
        except Exception as e:
            logger.error(
                f"❌ Failed to store artifact {storage_path} ({result.size} bytes): {e}"
            )
            raise PersistenceFailureError(storage_path) from e

        logger.info(f"💾 Stored artifact {storage_path} ({result.size} bytes)")
        return ArtifactReference(
            bucket=self._bucket,
            storage_path=storage_path,
            filename=filename,
            access_token=token,
            download_url=build_download_url(
                self._download_base_url, self._bucket, storage_path, token
            ),
        )

    async def read_access_token(self, storage_path: str) -> str | None:
        """Return the capability token stored with an object, if any."""
        info = await self.storage.get_file_info(self._bucket, storage_path)
        wanted = f"x-amz-meta-{ACCESS_TOKEN_METADATA_KEY}"
        for key, value in (info.get("metadata") or {}).items():
            if key.lower() in (wanted, ACCESS_TOKEN_METADATA_KEY):
                return value
        return None
