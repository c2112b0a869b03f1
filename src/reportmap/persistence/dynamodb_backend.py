"""DynamoDB backend implementing ICleanReportStore.

Table layout (one item per report):
    PK = "REPORT#<id>", SK = "REPORT"
    GSI CompanyIndex:  companyId (HASH) / createdAt (RANGE)
    GSI TemplateIndex: templateId (HASH) / createdAt (RANGE)

Embeddings are stored as a bracketed literal string (``"[0.1,0.2,...]"``)
so floats never pass through DynamoDB's Decimal conversion.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

import boto3
import numpy as np
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from reportmap.core.exceptions import NotFoundError, StorageError
from reportmap.models.clean_report import CleanReport, CreateCleanReportInput, SimilarReport
from reportmap.persistence.similarity import (
    DEFAULT_LIMIT,
    as_vector,
    format_vector,
    parse_vector,
    rank_by_similarity,
)

REPORT_SK = "REPORT"
COMPANY_INDEX = "CompanyIndex"
TEMPLATE_INDEX = "TemplateIndex"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pk(report_id: str) -> str:
    return f"REPORT#{report_id}"


def _to_item(report: CleanReport) -> dict[str, Any]:
    item: dict[str, Any] = {
        "PK": _pk(report.id),
        "SK": REPORT_SK,
        "id": report.id,
        "companyId": report.company_id,
        "templateId": report.template_id,
        "periodStart": report.period_start.isoformat(),
        "periodEnd": report.period_end.isoformat(),
        "metricsJson": json.dumps(report.metrics_json, ensure_ascii=False, sort_keys=True),
        "finalText": report.final_text,
        # Fixed-width UTC timestamps sort lexicographically in the GSIs
        "createdAt": report.created_at.astimezone(timezone.utc).isoformat(timespec="microseconds"),
    }
    if report.embedding:
        item["embedding"] = format_vector(report.embedding)
    if report.file_url:
        item["fileUrl"] = report.file_url
    return item


def _from_item(item: dict[str, Any]) -> CleanReport:
    embedding = item.get("embedding")
    return CleanReport(
        id=item["id"],
        company_id=item["companyId"],
        template_id=item["templateId"],
        period_start=date.fromisoformat(item["periodStart"]),
        period_end=date.fromisoformat(item["periodEnd"]),
        metrics_json=json.loads(item.get("metricsJson") or "{}"),
        final_text=item.get("finalText", ""),
        embedding=parse_vector(embedding) if embedding else None,
        file_url=item.get("fileUrl") or None,
        created_at=datetime.fromisoformat(item["createdAt"]),
    )


class DynamoDBCleanReportStore:
    """Production ICleanReportStore backed by a single DynamoDB table."""

    def __init__(self, table_name: str = "reportmap-clean-reports", table_suffix: str = "",
                 region: str = "us-east-1", endpoint_url: str | None = None,
                 dimensions: int | None = None,
                 clock: Callable[[], datetime] = _utcnow) -> None:
        self._table_name = f"{table_name}{table_suffix}"
        self._region = region
        self._endpoint_url = endpoint_url
        self._dimensions = dimensions
        self._clock = clock
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table = self._ddb.Table(self._table_name)

    def _write_vector(self, embedding: list[float]) -> np.ndarray:
        # Without configured dimensions the first vector written through
        # this instance pins them
        vector = as_vector(embedding, self._dimensions)
        if self._dimensions is None:
            self._dimensions = vector.size
        return vector

    def _query_index(self, index: str, attribute: str, value: str,
                     filter_expression: Any = None) -> list[CleanReport]:
        """Query a GSI newest-first, following pagination."""
        kwargs: dict[str, Any] = {
            "IndexName": index,
            "KeyConditionExpression": Key(attribute).eq(value),
            "ScanIndexForward": False,
        }
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = self._table.query(**kwargs)
                items.extend(resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    break
                kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as exc:
            raise StorageError(f"DynamoDB query on {index} failed for {value!r}: {exc}") from exc
        return [_from_item(item) for item in items]

    # ---- ICleanReportStore methods ----

    def create(self, data: CreateCleanReportInput) -> CleanReport:
        embedding = None
        if data.embedding:
            embedding = self._write_vector(data.embedding).tolist()
        report = CleanReport(
            id=str(uuid.uuid4()),
            company_id=data.company_id,
            template_id=data.template_id,
            period_start=data.period_start,
            period_end=data.period_end,
            metrics_json=data.metrics_json,
            final_text=data.final_text,
            embedding=embedding,
            file_url=data.file_url,
            created_at=self._clock(),
        )
        try:
            self._table.put_item(
                Item=_to_item(report),
                ConditionExpression="attribute_not_exists(PK)",
            )
        except ClientError as exc:
            raise StorageError(f"DynamoDB put failed for report {report.id!r}: {exc}") from exc
        return report

    def find_by_id(self, report_id: str) -> CleanReport | None:
        try:
            resp = self._table.get_item(Key={"PK": _pk(report_id), "SK": REPORT_SK})
        except ClientError as exc:
            raise StorageError(f"DynamoDB get failed for report {report_id!r}: {exc}") from exc
        item = resp.get("Item")
        return _from_item(item) if item else None

    def find_by_company_id(self, company_id: str) -> list[CleanReport]:
        return self._query_index(COMPANY_INDEX, "companyId", company_id)

    def find_by_template_id(self, template_id: str) -> list[CleanReport]:
        return self._query_index(TEMPLATE_INDEX, "templateId", template_id)

    def find_similar_by_embedding(
        self, embedding: list[float], company_id: str, limit: int = DEFAULT_LIMIT
    ) -> list[SimilarReport]:
        as_vector(embedding, self._dimensions)
        candidates = self._query_index(
            COMPANY_INDEX, "companyId", company_id,
            filter_expression=Attr("embedding").exists(),
        )
        return rank_by_similarity(embedding, candidates, company_id, limit)

    def update_embedding(self, report_id: str, embedding: list[float]) -> None:
        vector = self._write_vector(embedding)
        try:
            self._table.update_item(
                Key={"PK": _pk(report_id), "SK": REPORT_SK},
                UpdateExpression="SET embedding = :embedding",
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeValues={":embedding": format_vector(vector.tolist())},
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise NotFoundError(f"Clean report {report_id!r} not found") from exc
            raise StorageError(f"DynamoDB update failed for report {report_id!r}: {exc}") from exc

    def delete(self, report_id: str) -> None:
        try:
            self._table.delete_item(Key={"PK": _pk(report_id), "SK": REPORT_SK})
        except ClientError as exc:
            raise StorageError(f"DynamoDB delete failed for report {report_id!r}: {exc}") from exc
