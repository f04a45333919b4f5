"""Object storage backends for uploaded audio blobs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when an object storage operation fails."""

    code = "STORAGE_ERROR"


class UploadFailed(StorageError):
    """The blob could not be written."""

    code = "UPLOAD_FAILED"


class ObjectNotFound(StorageError):
    """No blob exists under the requested key."""

    code = "FILE_NOT_FOUND"


class AccessDenied(StorageError):
    """The storage provider rejected the credentials for this operation."""

    code = "ACCESS_DENIED"


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful ``put``."""

    key: str
    size: int


class ObjectStorage(ABC):
    """Contract for the blob store holding raw audio."""

    @abstractmethod
    async def put(self, data: bytes, key: str, *, content_type: str) -> StoredObject:
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def signed_read_url(self, key: str, ttl_seconds: int) -> str:
        ...


_ACCESS_DENIED_CODES = {"AccessDenied", "403", "InvalidAccessKeyId", "SignatureDoesNotMatch"}
_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def _client_error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStorage(ObjectStorage):
    """S3 (or S3-compatible, e.g. Cloudflare R2) storage backed by boto3."""

    def __init__(self, client: Any, bucket: str) -> None:
        if not bucket:
            raise StorageError("S3 bucket name is not configured.")
        self._client = client
        self._bucket = bucket

    async def put(self, data: bytes, key: str, *, content_type: str) -> StoredObject:
        """Upload ``data`` under ``key`` and report the stored size."""

        if not data:
            raise UploadFailed("Audio payload for upload was empty.")

        logger.info(
            "Uploading object bucket=%s key=%s size=%s type=%s",
            self._bucket,
            key,
            len(data),
            content_type,
        )
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ContentLength=len(data),
            )
        except ClientError as exc:
            if _client_error_code(exc) in _ACCESS_DENIED_CODES:
                raise AccessDenied(f"Access denied writing {key}: {exc}") from exc
            raise UploadFailed(f"Failed to upload {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise UploadFailed(f"Failed to upload {key}: {exc}") from exc

        return StoredObject(key=key, size=len(data))

    async def get(self, key: str) -> bytes:
        def _read() -> bytes:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()

        try:
            return await run_in_threadpool(_read)
        except ClientError as exc:
            code = _client_error_code(exc)
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFound(f"File not found: {key}") from exc
            if code in _ACCESS_DENIED_CODES:
                raise AccessDenied(f"Access denied reading {key}") from exc
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(
                self._client.delete_object,
                Bucket=self._bucket,
                Key=key,
            )
        except ClientError as exc:
            code = _client_error_code(exc)
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFound(f"File not found: {key}") from exc
            if code in _ACCESS_DENIED_CODES:
                raise AccessDenied(f"Access denied to delete {key}") from exc
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc

    async def signed_read_url(self, key: str, ttl_seconds: int) -> str:
        try:
            return await run_in_threadpool(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to generate presigned URL for {key}: {exc}") from exc


class LocalObjectStorage(ObjectStorage):
    """Filesystem storage for development; keys map to paths under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise AccessDenied(f"Key escapes the storage root: {key}")
        return path

    async def put(self, data: bytes, key: str, *, content_type: str) -> StoredObject:
        if not data:
            raise UploadFailed("Audio payload for upload was empty.")
        path = self._path_for(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await run_in_threadpool(_write)
        except OSError as exc:
            raise UploadFailed(f"Failed to write {key}: {exc}") from exc
        return StoredObject(key=key, size=len(data))

    async def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return await run_in_threadpool(path.read_bytes)
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"File not found: {key}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await run_in_threadpool(path.unlink)
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"File not found: {key}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc

    async def signed_read_url(self, key: str, ttl_seconds: int) -> str:
        path = self._path_for(key)
        if not path.exists():
            raise ObjectNotFound(f"File not found: {key}")
        # Local files are not signed; the TTL only applies to remote stores.
        return path.as_uri()


__all__ = [
    "AccessDenied",
    "LocalObjectStorage",
    "ObjectNotFound",
    "ObjectStorage",
    "S3ObjectStorage",
    "StorageError",
    "StoredObject",
    "UploadFailed",
]
