"""S3-compatible object store backend (requires ``pip install clouddrive[s3]``).

Works against AWS S3 and API-compatible services such as Cloudflare R2 or
MinIO via ``endpoint_url``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

try:
    import aioboto3
    from botocore.exceptions import BotoCoreError, ClientError
except ImportError as exc:
    raise ImportError(
        "S3 object store requires aioboto3. Install it with: pip install clouddrive[s3]"
    ) from exc

from clouddrive.errors import StoreUnavailable
from clouddrive.lib.storage.base import DEFAULT_PAGE_SIZE, ListPage, ObjectInfo, StoredObject

if TYPE_CHECKING:
    from clouddrive.config import S3Config

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request.
DELETE_BATCH_SIZE = 1000

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStore:
    """Store objects in an S3-compatible bucket."""

    def __init__(self, config: S3Config, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._config = config
        self._session = aioboto3.Session()
        self.page_size = min(page_size, 1000)

    def _client_kwargs(self) -> dict:
        kwargs: dict = {
            "region_name": self._config.region,
        }
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        if self._config.access_key_id:
            kwargs["aws_access_key_id"] = self._config.access_key_id
        if self._config.secret_access_key:
            kwargs["aws_secret_access_key"] = self._config.secret_access_key
        return kwargs

    def _full_key(self, key: str) -> str:
        if self._config.prefix:
            return f"{self._config.prefix.rstrip('/')}/{key}"
        return key

    def _relative_key(self, full_key: str) -> str:
        if self._config.prefix:
            return full_key[len(self._config.prefix.rstrip("/")) + 1:]
        return full_key

    def _client(self):
        return self._session.client("s3", **self._client_kwargs())

    async def get(self, key: str) -> StoredObject | None:
        try:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self._config.bucket, Key=self._full_key(key))
                body = await response["Body"].read()
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise StoreUnavailable(f"S3 get failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreUnavailable(f"S3 get failed for {key}: {exc}") from exc
        return StoredObject(info=self._info_from_response(key, response), body=body)

    async def head(self, key: str) -> ObjectInfo | None:
        try:
            async with self._client() as s3:
                response = await s3.head_object(Bucket=self._config.bucket, Key=self._full_key(key))
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise StoreUnavailable(f"S3 head failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreUnavailable(f"S3 head failed for {key}: {exc}") from exc
        return self._info_from_response(key, response)

    async def put(self, key: str, data: bytes | None, content_type: str | None = None) -> ObjectInfo:
        body = data or b""
        put_kwargs: dict = {
            "Bucket": self._config.bucket,
            "Key": self._full_key(key),
            "Body": body,
        }
        if content_type:
            put_kwargs["ContentType"] = content_type
        try:
            async with self._client() as s3:
                await s3.put_object(**put_kwargs)
                response = await s3.head_object(Bucket=self._config.bucket, Key=self._full_key(key))
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"S3 put failed for {key}: {exc}") from exc
        return self._info_from_response(key, response)

    async def delete(self, keys: Sequence[str]) -> list[str]:
        failed: list[str] = []
        try:
            async with self._client() as s3:
                for start in range(0, len(keys), DELETE_BATCH_SIZE):
                    batch = keys[start:start + DELETE_BATCH_SIZE]
                    response = await s3.delete_objects(
                        Bucket=self._config.bucket,
                        Delete={
                            "Objects": [{"Key": self._full_key(key)} for key in batch],
                            "Quiet": True,
                        },
                    )
                    for error in response.get("Errors", []):
                        logger.warning("S3 delete failed for %s: %s", error.get("Key"), error.get("Message"))
                        failed.append(self._relative_key(error["Key"]))
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"S3 delete failed: {exc}") from exc
        return failed

    async def list(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ListPage:
        kwargs: dict = {
            "Bucket": self._config.bucket,
            "Prefix": self._full_key(prefix),
            "MaxKeys": min(limit or self.page_size, self.page_size),
        }
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if cursor:
            kwargs["ContinuationToken"] = cursor
        try:
            async with self._client() as s3:
                response = await s3.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"S3 list failed for prefix {prefix!r}: {exc}") from exc

        objects = [
            ObjectInfo(
                key=self._relative_key(obj["Key"]),
                size=obj["Size"],
                uploaded_at=obj["LastModified"],
                etag=obj.get("ETag", "").strip('"') or None,
            )
            for obj in response.get("Contents", [])
        ]
        prefixes = [self._relative_key(p["Prefix"]) for p in response.get("CommonPrefixes", [])]
        truncated = bool(response.get("IsTruncated"))
        return ListPage(
            objects=objects,
            prefixes=prefixes,
            truncated=truncated,
            cursor=response.get("NextContinuationToken") if truncated else None,
        )

    async def close(self) -> None:
        """No persistent resources to clean up."""

    @staticmethod
    def _info_from_response(key: str, response: dict) -> ObjectInfo:
        return ObjectInfo(
            key=key,
            size=response["ContentLength"],
            uploaded_at=response["LastModified"],
            content_type=response.get("ContentType"),
            etag=response.get("ETag", "").strip('"') or None,
        )


def _is_missing(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code")) in _MISSING_CODES
