"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class GeminiConfig(BaseSettings):
    """Gemini text-generation configuration."""

    model_config = {"env_prefix": "REPORTMAP_GEMINI_"}

    api_key: str | None = None
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    model: str = "gemini-1.5-flash"
    insight_model: str = "gemini-2.0-flash"
    temperature: float = 0.2
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048
    timeout: float = 30.0  # seconds


class EmbeddingConfig(BaseSettings):
    """Embedding provider configuration."""

    model_config = {"env_prefix": "REPORTMAP_EMBEDDING_"}

    provider: Literal["mock", "openai"] = "mock"
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    timeout: float = 30.0
    cache_ttl: int = 86400  # 24 hours


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "REPORTMAP_DYNAMO_"}

    table_name: str = "reportmap-clean-reports"
    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "REPORTMAP_REDIS_"}

    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0


class S3Config(BaseSettings):
    """S3 report file storage configuration."""

    model_config = {"env_prefix": "REPORTMAP_S3_"}

    bucket: str = "reportmap-report-files"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "REPORTMAP_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    mapping_provider: Literal["mock", "gemini"] = "mock"
    report_store: Literal["memory", "dynamodb"] = "memory"

    gemini: GeminiConfig = GeminiConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
