"""S3 storage for rendered report files, implementing IFileStore."""

from __future__ import annotations

import boto3
from botocore.exceptions import ClientError

from reportmap.core.exceptions import StorageError


class S3FileStore:
    """Production IFileStore backed by S3. Returned URLs are ``s3://`` URIs."""

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(
                Bucket=self._bucket, Key=key, Body=data, ContentType=content_type,
            )
        except ClientError as exc:
            raise StorageError(f"S3 upload failed for {key!r}: {exc}") from exc
        return f"s3://{self._bucket}/{key}"

    def read(self, key: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=key)
            return resp["Body"].read()
        except ClientError as exc:
            raise StorageError(f"S3 read failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            raise StorageError(f"S3 delete failed for {key!r}: {exc}") from exc
