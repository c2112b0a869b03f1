"""Create the DynamoDB clean-report table with its GSIs.

Usage:
    python scripts/create_tables.py --endpoint-url http://localhost:4566 --suffix -dev
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

CLEAN_REPORT_TABLE = "reportmap-clean-reports"


def _gsi(name: str, hash_key: str) -> dict[str, Any]:
    return {
        "IndexName": name,
        "KeySchema": [
            {"AttributeName": hash_key, "KeyType": "HASH"},
            {"AttributeName": "createdAt", "KeyType": "RANGE"},
        ],
        "Projection": {"ProjectionType": "ALL"},
    }


def create_tables(ddb: Any, suffix: str = "", table_name: str = CLEAN_REPORT_TABLE) -> bool:
    """Create the clean-report table. Returns False if it already exists."""
    client = ddb.meta.client
    full_name = f"{table_name}{suffix}"
    if full_name in client.list_tables().get("TableNames", []):
        print(f"  Table {full_name} already exists, skipping")
        return False
    client.create_table(
        TableName=full_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
            {"AttributeName": "companyId", "AttributeType": "S"},
            {"AttributeName": "templateId", "AttributeType": "S"},
            {"AttributeName": "createdAt", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            _gsi("CompanyIndex", "companyId"),
            _gsi("TemplateIndex", "templateId"),
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=full_name)
    print(f"  Created table {full_name}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create reportmap DynamoDB tables")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (LocalStack)")
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--suffix", default="", help='Table suffix, e.g. "-dev"')
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url
    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.suffix)
    print("Done.")


if __name__ == "__main__":
    main()
