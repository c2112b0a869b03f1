"""Integration test fixtures for LocalStack DynamoDB and S3."""

from __future__ import annotations

import os
import sys
import uuid

import boto3
import pytest

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
REGION = "us-east-1"


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL)
        client.list_tables()
        return True
    except Exception:
        return False


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason="LocalStack not available",
)


@pytest.fixture(scope="session")
def localstack_ddb():
    """DynamoDB resource pointing at LocalStack."""
    return boto3.resource("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def localstack_s3():
    """S3 client pointing at LocalStack."""
    return boto3.client("s3", region_name=REGION, endpoint_url=LOCALSTACK_URL)


@pytest.fixture
def clean_report_table(localstack_ddb):
    """Create a fresh clean-report table via the setup script; drop it afterwards."""
    sys.path.insert(0, str(os.path.join(os.path.dirname(__file__), "..", "..", "scripts")))
    from create_tables import CLEAN_REPORT_TABLE, create_tables

    suffix = f"-inttest-{uuid.uuid4().hex[:8]}"
    create_tables(localstack_ddb, suffix=suffix)
    yield suffix
    localstack_ddb.Table(f"{CLEAN_REPORT_TABLE}{suffix}").delete()


@pytest.fixture
def report_bucket(localstack_s3):
    name = f"reportmap-inttest-{uuid.uuid4().hex[:8]}"
    localstack_s3.create_bucket(Bucket=name)
    yield name
    for obj in localstack_s3.list_objects_v2(Bucket=name).get("Contents", []):
        localstack_s3.delete_object(Bucket=name, Key=obj["Key"])
    localstack_s3.delete_bucket(Bucket=name)
