"""Tests for the authorization code maintenance script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from authserver.clients import SQLiteCodeStore
from authserver.models.authorization_code import AuthorizationCodeRecord
from scripts import sweep_codes

MANAGED_ENV_KEYS = [
    "TOKEN_SIGNING_SECRET",
    "CODE_STORE_BACKEND",
    "CODE_STORE_SQLITE_PATH",
    "CODE_STORE_DYNAMODB_TABLE",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_managed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in MANAGED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["check", "purge"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    exit_code = sweep_codes.main([command, "--env-file", str(tmp_path / ".missing-env")])
    assert exit_code == sweep_codes.EXIT_RUNTIME_ERROR


def test_check_reports_missing_secret(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, CODE_STORE_BACKEND="memory")

    assert sweep_codes.main(["check", "--env-file", str(env_file)]) == (
        sweep_codes.EXIT_VALIDATION_ERROR
    )


def test_check_rejects_unknown_backend(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, TOKEN_SIGNING_SECRET="secret", CODE_STORE_BACKEND="redis")

    assert sweep_codes.main(["check", "--env-file", str(env_file)]) == (
        sweep_codes.EXIT_VALIDATION_ERROR
    )


def test_check_passes_with_valid_settings(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, TOKEN_SIGNING_SECRET="secret")

    assert sweep_codes.main(["check", "--env-file", str(env_file)]) == sweep_codes.EXIT_OK


def test_purge_unsupported_for_memory_backend(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, TOKEN_SIGNING_SECRET="secret", CODE_STORE_BACKEND="memory")

    assert sweep_codes.main(["purge", "--env-file", str(env_file)]) == (
        sweep_codes.EXIT_UNSUPPORTED_BACKEND
    )


def test_purge_removes_expired_sqlite_codes(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db_path = tmp_path / "codes.db"
    store = SQLiteCodeStore(str(db_path))
    now = datetime.now(timezone.utc)
    store.save(
        AuthorizationCodeRecord(
            code="stale", client_id="client-1", expires=now - timedelta(minutes=5)
        )
    )
    store.save(
        AuthorizationCodeRecord(
            code="fresh", client_id="client-1", expires=now + timedelta(minutes=5)
        )
    )

    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        TOKEN_SIGNING_SECRET="secret",
        CODE_STORE_BACKEND="sqlite",
        CODE_STORE_SQLITE_PATH=str(db_path),
    )

    exit_code = sweep_codes.main(["purge", "--env-file", str(env_file)])

    assert exit_code == sweep_codes.EXIT_OK
    assert "Purged 1 expired" in capsys.readouterr().out
    assert store.fetch("stale") is None
    assert store.fetch("fresh") is not None
