try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from authserver.services import (
    FernetAccessTokenFactory,
    InvalidAccessTokenError,
    TokenCipherService,
)


@pytest.fixture
def factory() -> FernetAccessTokenFactory:
    return FernetAccessTokenFactory(
        TokenCipherService(secret="token-secret"), ttl_seconds=900, token_type="Bearer"
    )


def test_create_returns_token_response(factory: FernetAccessTokenFactory) -> None:
    token = factory.create("client-1", "user-1", "openid email", "urn:acr:otp")

    assert token.token_type == "Bearer"
    assert token.expires_in == 900
    assert token.scope == "openid email"
    assert token.access_token


def test_open_recovers_grant(factory: FernetAccessTokenFactory) -> None:
    token = factory.create("client-1", "user-1", "openid email", "urn:acr:otp")

    claims = factory.open(token.access_token)

    assert claims.client_id == "client-1"
    assert claims.user_id == "user-1"
    assert claims.acr == "urn:acr:otp"
    assert claims.scopes() == {"openid", "email"}


def test_open_handles_tokens_without_user_or_scope(factory: FernetAccessTokenFactory) -> None:
    token = factory.create("client-1", None, None, None)

    claims = factory.open(token.access_token)

    assert claims.user_id is None
    assert claims.scopes() == set()


def test_open_rejects_foreign_tokens(factory: FernetAccessTokenFactory) -> None:
    other = FernetAccessTokenFactory(TokenCipherService(secret="elsewhere"))
    token = other.create("client-1", "user-1", "openid", None)

    with pytest.raises(InvalidAccessTokenError):
        factory.open(token.access_token)

    with pytest.raises(InvalidAccessTokenError):
        factory.open("garbage")


def test_open_rejects_sealed_payloads_that_are_not_grants() -> None:
    cipher = TokenCipherService(secret="token-secret")
    factory = FernetAccessTokenFactory(cipher)

    with pytest.raises(InvalidAccessTokenError):
        factory.open(cipher.seal({"unexpected": True}))
