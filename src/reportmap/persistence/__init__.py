"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from reportmap.core.config import AppSettings
from reportmap.persistence.dynamodb_backend import DynamoDBCleanReportStore
from reportmap.persistence.memory_backend import MemoryCleanReportStore
from reportmap.persistence.redis_backend import RedisCacheBackend
from reportmap.persistence.s3_backend import S3FileStore


def create_persistence(settings: AppSettings | None = None):
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (report_store, cache, file_store). ``cache`` is None when
        Redis is disabled; ``file_store`` is None for the in-memory store.
    """
    if settings is None:
        settings = AppSettings()

    cache = None
    if settings.redis.enabled:
        cache = RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
        )

    if settings.report_store == "memory":
        return MemoryCleanReportStore(dimensions=settings.embedding.dimensions), cache, None

    report_store = DynamoDBCleanReportStore(
        table_name=settings.dynamodb.table_name,
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
        dimensions=settings.embedding.dimensions,
    )

    file_store = S3FileStore(
        bucket=settings.s3.bucket,
        region=settings.s3.region,
        endpoint_url=settings.s3.endpoint_url,
    )

    return report_store, cache, file_store
