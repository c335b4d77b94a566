"""
Authorization code store backed by a DynamoDB table.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from authserver.core.config import CodeStoreSettings
from authserver.models.authorization_code import AuthorizationCodeRecord

logger = logging.getLogger(__name__)

_SORT_KEY = "oauth#authorization_code"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECONDS = Decimal(1_000_000)


def _partition_key(code: str) -> str:
    return f"code#{code}"


def _to_epoch(value: datetime) -> Decimal:
    """Exact epoch seconds, microseconds included."""
    delta = value - _EPOCH
    whole = delta.days * 86_400 + delta.seconds
    return Decimal(whole) + Decimal(delta.microseconds) / _MICROSECONDS


def _from_epoch(value: Decimal) -> datetime:
    whole = int(value)
    microseconds = int((value - whole) * _MICROSECONDS)
    return _EPOCH + timedelta(seconds=whole, microseconds=microseconds)


class DynamoDBCodeStore:
    """Codes stored as items keyed by ``(pk, sk)``.

    ``expires`` keeps the exact epoch instant. ``ttl`` holds the same instant
    rounded up to whole seconds so the table's TTL attribute can be pointed at
    it and expired codes are swept by DynamoDB itself.
    """

    def __init__(self, settings: CodeStoreSettings, table: Any = None) -> None:
        self._settings = settings
        if table is None:
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def save(self, record: AuthorizationCodeRecord) -> None:
        """Put an authorization code in the table."""
        if not record.code:
            raise ValueError("Authorization code records must carry their code to be saved.")
        item: Dict[str, Any] = record.model_dump(exclude_none=True)
        item["pk"] = _partition_key(record.code)
        item["sk"] = _SORT_KEY
        if record.expires is not None:
            expires = _to_epoch(record.expires)
            item["expires"] = expires
            item["ttl"] = int(expires.to_integral_value(rounding="ROUND_CEILING"))
        self._table.put_item(Item=item)

    def fetch(self, code: str) -> Optional[AuthorizationCodeRecord]:
        """Retrieve a live authorization code using a strongly consistent read."""
        response = self._table.get_item(
            Key={"pk": _partition_key(code), "sk": _SORT_KEY},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item or "consumed_at" in item:
            return None
        fields = {
            key: value for key, value in item.items() if key not in ("pk", "sk", "ttl")
        }
        if isinstance(fields.get("expires"), Decimal):
            fields["expires"] = _from_epoch(fields["expires"])
        return AuthorizationCodeRecord.model_validate(fields)

    def invalidate(self, code: str) -> bool:
        """Conditionally stamp ``consumed_at``; only the first caller succeeds."""
        try:
            self._table.update_item(
                Key={"pk": _partition_key(code), "sk": _SORT_KEY},
                UpdateExpression="SET consumed_at = :consumed_at",
                ConditionExpression="attribute_exists(pk) AND attribute_not_exists(consumed_at)",
                ExpressionAttributeValues={
                    ":consumed_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.debug("Authorization code already consumed or unknown")
                return False
            raise
        return True


__all__ = ["DynamoDBCodeStore"]
