"""Integration tests for DynamoDBCleanReportStore and S3FileStore against LocalStack."""

from __future__ import annotations

import pytest

from reportmap.persistence.dynamodb_backend import DynamoDBCleanReportStore
from reportmap.persistence.s3_backend import S3FileStore
from tests.fakes.store_contract import CleanReportStoreContract
from tests.integration.conftest import LOCALSTACK_URL, REGION, skip_no_localstack

pytestmark = pytest.mark.integration


@skip_no_localstack
class TestDynamoDBCleanReportStoreIntegration(CleanReportStoreContract):
    @pytest.fixture
    def store(self, clean_report_table, clock):
        return DynamoDBCleanReportStore(
            table_suffix=clean_report_table,
            region=REGION,
            endpoint_url=LOCALSTACK_URL,
            dimensions=2,
            clock=clock,
        )

    @pytest.fixture
    def unsized_store(self, clean_report_table, clock):
        return DynamoDBCleanReportStore(
            table_suffix=clean_report_table,
            region=REGION,
            endpoint_url=LOCALSTACK_URL,
            clock=clock,
        )


@skip_no_localstack
class TestS3FileStoreIntegration:
    def test_upload_read_delete(self, report_bucket):
        files = S3FileStore(bucket=report_bucket, region=REGION, endpoint_url=LOCALSTACK_URL)
        url = files.upload("clean-reports/acme/jan.hwpx", b"PK\x03\x04")
        assert url == f"s3://{report_bucket}/clean-reports/acme/jan.hwpx"
        assert files.read("clean-reports/acme/jan.hwpx") == b"PK\x03\x04"
        files.delete("clean-reports/acme/jan.hwpx")
