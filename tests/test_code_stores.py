try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from authserver.clients import (
    CodeStoreGateway,
    DynamoDBCodeStore,
    InMemoryCodeStore,
    SQLiteCodeStore,
)
from authserver.core.config import CodeStoreSettings
from authserver.models.authorization_code import AuthorizationCodeRecord

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeDynamoTable:
    """Implements the subset of the boto3 Table API the store relies on."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict] = {}

    def put_item(self, *, Item: dict) -> None:
        stored = dict(Item)
        if "expires" in stored:
            stored["expires"] = Decimal(stored["expires"])
        self.items[(Item["pk"], Item["sk"])] = stored

    def get_item(self, *, Key: dict, ConsistentRead: bool = False) -> dict:
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": dict(item)} if item is not None else {}

    def update_item(self, *, Key, UpdateExpression, ConditionExpression, ExpressionAttributeValues):
        item = self.items.get((Key["pk"], Key["sk"]))
        if item is None or "consumed_at" in item:
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "failed"}},
                "UpdateItem",
            )
        item["consumed_at"] = ExpressionAttributeValues[":consumed_at"]


class BrokenDynamoTable(FakeDynamoTable):
    def update_item(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "UpdateItem",
        )


def _record(code: str = "abc123", **overrides) -> AuthorizationCodeRecord:
    fields = {
        "code": code,
        "client_id": "client-1",
        "user_id": "user-1",
        "redirect_uri": "https://client.example.com/cb",
        "expires": NOW + timedelta(minutes=10),
        "scope": "openid profile",
        "acr": "urn:acr:otp",
        "code_challenge": "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM",
        "code_challenge_method": "S256",
    }
    fields.update(overrides)
    return AuthorizationCodeRecord(**fields)


def _dynamo_settings() -> CodeStoreSettings:
    return CodeStoreSettings(backend="dynamodb", dynamodb_table_name="authorization-codes")


@pytest.fixture(params=["memory", "sqlite", "dynamodb"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryCodeStore()
    if request.param == "sqlite":
        return SQLiteCodeStore(str(tmp_path / "codes" / "authorization_codes.db"))
    return DynamoDBCodeStore(_dynamo_settings(), table=FakeDynamoTable())


def test_stores_implement_gateway(store) -> None:
    assert isinstance(store, CodeStoreGateway)


def test_fetch_round_trips_every_field(store) -> None:
    record = _record()
    store.save(record)

    fetched = store.fetch("abc123")

    assert fetched == record


def test_fetch_unknown_code(store) -> None:
    assert store.fetch("missing") is None


def test_invalidate_is_single_use_and_idempotent(store) -> None:
    store.save(_record())

    assert store.invalidate("abc123") is True
    assert store.fetch("abc123") is None
    assert store.invalidate("abc123") is False
    assert store.invalidate("never-issued") is False


def test_invalidate_only_touches_its_code(store) -> None:
    store.save(_record("first"))
    store.save(_record("second"))

    store.invalidate("first")

    assert store.fetch("first") is None
    assert store.fetch("second") is not None


def test_save_requires_code(store) -> None:
    with pytest.raises(ValueError):
        store.save(_record(code=None))


def test_record_without_expiry_is_returned_as_is(store) -> None:
    store.save(_record(expires=None))

    fetched = store.fetch("abc123")

    assert fetched is not None
    assert fetched.expires is None


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_concurrent_invalidation_has_one_winner(backend: str, tmp_path: Path) -> None:
    if backend == "memory":
        store = InMemoryCodeStore()
    else:
        store = SQLiteCodeStore(str(tmp_path / "race.db"))
    store.save(_record())

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.invalidate("abc123"), range(16)))

    assert results.count(True) == 1


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_purge_expired(backend: str, tmp_path: Path) -> None:
    if backend == "memory":
        store = InMemoryCodeStore()
    else:
        store = SQLiteCodeStore(str(tmp_path / "purge.db"))
    store.save(_record("stale", expires=NOW - timedelta(seconds=1)))
    store.save(_record("boundary", expires=NOW))
    store.save(_record("fresh", expires=NOW + timedelta(seconds=1)))
    store.save(_record("unbounded", expires=None))

    removed = store.purge_expired(NOW)

    assert removed == 2
    assert store.fetch("stale") is None
    assert store.fetch("boundary") is None
    assert store.fetch("fresh") is not None
    assert store.fetch("unbounded") is not None


def test_sqlite_purge_understands_epoch_expiry(tmp_path: Path) -> None:
    path = tmp_path / "epoch.db"
    store = SQLiteCodeStore(str(path))
    with sqlite3.connect(path) as conn:
        conn.executemany(
            "INSERT INTO authorization_codes (code, client_id, expires) VALUES (?, ?, ?)",
            [
                ("live", "client-1", int((NOW + timedelta(hours=1)).timestamp())),
                ("stale", "client-1", int((NOW - timedelta(hours=1)).timestamp())),
            ],
        )
    store.save(_record("iso-live", expires=NOW + timedelta(hours=1)))

    assert store.fetch("live").expires > NOW
    assert store.purge_expired(NOW) == 1
    assert store.fetch("live") is not None
    assert store.fetch("stale") is None
    assert store.fetch("iso-live") is not None


def test_memory_store_forgets_consumed_codes() -> None:
    store = InMemoryCodeStore()
    store.save(_record(expires=NOW - timedelta(seconds=1)))

    assert store.invalidate("abc123") is True
    # Nothing left for the sweeper once the code was exchanged.
    assert store.purge_expired(NOW) == 0
    assert store.invalidate("abc123") is False


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    path = str(tmp_path / "shared.db")
    SQLiteCodeStore(path).save(_record())

    other = SQLiteCodeStore(path)
    assert other.fetch("abc123") == _record()
    assert other.invalidate("abc123") is True
    assert SQLiteCodeStore(path).fetch("abc123") is None


def test_dynamodb_store_writes_epoch_expiry() -> None:
    table = FakeDynamoTable()
    store = DynamoDBCodeStore(_dynamo_settings(), table=table)

    store.save(_record())

    item = table.items[("code#abc123", "oauth#authorization_code")]
    expected = int((NOW + timedelta(minutes=10)).timestamp())
    assert item["expires"] == expected
    assert item["ttl"] == expected


def test_dynamodb_store_keeps_fractional_expiry() -> None:
    table = FakeDynamoTable()
    store = DynamoDBCodeStore(_dynamo_settings(), table=table)
    expires = NOW + timedelta(milliseconds=900)

    store.save(_record(expires=expires))

    item = table.items[("code#abc123", "oauth#authorization_code")]
    assert item["expires"] == Decimal("1714564800.9")
    assert item["ttl"] == 1714564801
    assert store.fetch("abc123").expires == expires


def test_dynamodb_store_propagates_unexpected_errors() -> None:
    store = DynamoDBCodeStore(_dynamo_settings(), table=BrokenDynamoTable())
    store.save(_record())

    with pytest.raises(ClientError):
        store.invalidate("abc123")
