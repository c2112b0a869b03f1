"""Unit tests for S3FileStore using moto."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from reportmap.core.exceptions import StorageError
from reportmap.persistence.s3_backend import S3FileStore

BUCKET = "test-report-files"


@pytest.fixture
def s3_backend():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield S3FileStore(bucket=BUCKET, region="us-east-1")


class TestUpload:
    def test_upload_returns_s3_uri(self, s3_backend):
        url = s3_backend.upload("clean-reports/acme/report.hwpx", b"PK\x03\x04")
        assert url == f"s3://{BUCKET}/clean-reports/acme/report.hwpx"

    def test_upload_stores_bytes_and_content_type(self, s3_backend):
        s3_backend.upload("r/report.xlsx", b"\x00\x01", content_type="application/vnd.ms-excel")
        obj = boto3.client("s3", region_name="us-east-1").get_object(Bucket=BUCKET, Key="r/report.xlsx")
        assert obj["ContentType"] == "application/vnd.ms-excel"
        assert s3_backend.read("r/report.xlsx") == b"\x00\x01"


class TestRead:
    def test_read_missing_key_raises(self, s3_backend):
        with pytest.raises(StorageError):
            s3_backend.read("does/not/exist.hwpx")


class TestDelete:
    def test_delete_removes_object(self, s3_backend):
        s3_backend.upload("r/a.hwpx", b"data")
        s3_backend.delete("r/a.hwpx")
        with pytest.raises(StorageError):
            s3_backend.read("r/a.hwpx")

    def test_delete_missing_is_noop(self, s3_backend):
        s3_backend.delete("never/existed.hwpx")

    def test_missing_bucket_raises(self, s3_backend):
        store = S3FileStore(bucket="no-such-bucket", region="us-east-1")
        with pytest.raises(StorageError):
            store.upload("k", b"x")
