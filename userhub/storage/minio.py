from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Iterator, Optional

from minio import Minio
from minio.error import S3Error

from userhub.core import NotFound, StorageFailure

_CHUNK_SIZE = 32 * 1024


@dataclass
class StoredObject:
    """A readable object fetched from the bucket."""

    bucket: str
    name: str
    content_type: Optional[str]
    chunks: Iterator[bytes]


class MinioStorageHandler:
    """A thin wrapper around Minio SDK APIs for the profile-photo bucket.

    All methods are blocking; async callers run them in a worker thread.
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        create_if_missing: bool = True,
        region: Optional[str] = None,
        client: Optional[Minio] = None,
    ) -> None:
        """Initialize a MinioStorageHandler.

        Args:
            bucket_name: Name of the S3 bucket.
            endpoint: Minio/S3 server endpoint (e.g., "localhost:9000").
            access_key: Access key for authentication.
            secret_key: Secret key for authentication.
            secure: Whether to use HTTPS.
            create_if_missing: If True, create the bucket on first write if it does not exist.
            region: Optional region for bucket creation.
            client: Pre-built Minio client, mainly for tests.
        """
        self.client = client or Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self.bucket_name = bucket_name
        self.create_if_missing = create_if_missing
        self._bucket_checked = False

    def ensure_bucket(self) -> None:
        """Ensure the bucket exists, creating it if allowed. Checked once per handler."""
        if self._bucket_checked:
            return
        try:
            if not self.client.bucket_exists(self.bucket_name):
                if not self.create_if_missing:
                    raise StorageFailure(f"Bucket {self.bucket_name!r} not found")
                self.client.make_bucket(self.bucket_name)
        except S3Error as e:
            raise StorageFailure("Object storage unavailable", detail=str(e)) from e
        self._bucket_checked = True

    def put_bytes(self, name: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store ``data`` under ``name`` and return the bucket it was written to."""
        self.ensure_bucket()
        try:
            self.client.put_object(
                self.bucket_name,
                name,
                io.BytesIO(data),
                len(data),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as e:
            raise StorageFailure("Failed to store object", detail=str(e)) from e
        return self.bucket_name

    def get_object(self, name: str, bucket: Optional[str] = None) -> StoredObject:
        """Open an object for streaming.

        Raises:
            NotFound: When the object does not exist.
            StorageFailure: For any other storage error.
        """
        bucket = bucket or self.bucket_name
        try:
            response = self.client.get_object(bucket, name)
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise NotFound("Profile photo not found") from e
            raise StorageFailure("Failed to read object", detail=str(e)) from e
        return StoredObject(
            bucket=bucket,
            name=name,
            content_type=response.headers.get("Content-Type"),
            chunks=self._iter_response(response),
        )

    @staticmethod
    def _iter_response(response) -> Iterator[bytes]:
        try:
            for chunk in response.stream(_CHUNK_SIZE):
                yield chunk
        finally:
            response.close()
            response.release_conn()

    def delete(self, name: str, bucket: Optional[str] = None) -> None:
        """Delete an object. Missing objects are ignored."""
        try:
            self.client.remove_object(bucket or self.bucket_name, name)
        except S3Error as e:
            if e.code == "NoSuchKey":
                return
            raise StorageFailure("Failed to delete object", detail=str(e)) from e
