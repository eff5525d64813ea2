from datetime import datetime, timedelta

from jose import jwt
import pytest

from kithu.config import Settings
from kithu.errors import ConfigurationError, InvalidOrExpiredToken
from kithu.models.user import User
from kithu.services.tokens import TokenIssuer, hash_refresh_token

from conftest import TEST_SECRET_KEY, make_settings

ISSUED_AT = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _user() -> User:
    return User(id="user-1", email="alice@example.com", password_hash="x")


def _issuer(clock: FakeClock, **overrides) -> TokenIssuer:
    return TokenIssuer(make_settings(**overrides), clock=clock)


def test_access_token_carries_identity_claims():
    clock = FakeClock(ISSUED_AT)
    issuer = _issuer(clock)

    token = issuer.issue_access_token(_user())
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "alice@example.com"
    assert claims["id"] == "user-1"
    assert claims["iss"] == "kithu-identity"
    assert claims["aud"] == "kithu-web"
    assert claims["jti"]
    assert claims["exp"] - claims["iat"] == 15 * 60

    verified = issuer.verify_access_token(token)
    assert verified.user_id == "user-1"
    assert verified.email == "alice@example.com"
    assert verified.expires_at == ISSUED_AT + timedelta(minutes=15)


def test_each_access_token_has_a_fresh_token_id():
    issuer = _issuer(FakeClock(ISSUED_AT))
    first = jwt.get_unverified_claims(issuer.issue_access_token(_user()))
    second = jwt.get_unverified_claims(issuer.issue_access_token(_user()))
    assert first["jti"] != second["jti"]


def test_access_token_expiry_boundary():
    clock = FakeClock(ISSUED_AT)
    issuer = _issuer(clock)
    token = issuer.issue_access_token(_user())
    expires_at = ISSUED_AT + timedelta(minutes=15)

    clock.now = expires_at - timedelta(seconds=1)
    assert issuer.verify_access_token(token).user_id == "user-1"

    clock.now = expires_at + timedelta(seconds=1)
    with pytest.raises(InvalidOrExpiredToken):
        issuer.verify_access_token(token)


def test_access_token_rejected_for_wrong_audience_issuer_or_key():
    clock = FakeClock(ISSUED_AT)
    token = _issuer(clock).issue_access_token(_user())

    with pytest.raises(InvalidOrExpiredToken):
        _issuer(clock, jwt_audience="someone-else").verify_access_token(token)
    with pytest.raises(InvalidOrExpiredToken):
        _issuer(clock, jwt_issuer="someone-else").verify_access_token(token)
    with pytest.raises(InvalidOrExpiredToken):
        _issuer(clock, secret_key="fedcba9876543210" * 4).verify_access_token(token)


def test_tampered_or_wrong_type_token_rejected():
    clock = FakeClock(ISSUED_AT)
    issuer = _issuer(clock)
    token = issuer.issue_access_token(_user())

    header, payload, signature = token.split(".")
    with pytest.raises(InvalidOrExpiredToken):
        issuer.verify_access_token(f"{header}.{payload}.{signature[::-1]}")

    claims = jwt.get_unverified_claims(token)
    claims["type"] = "refresh"
    forged = jwt.encode(claims, TEST_SECRET_KEY, algorithm="HS256")
    with pytest.raises(InvalidOrExpiredToken):
        issuer.verify_access_token(forged)


def test_refresh_tokens_are_long_random_and_unique():
    issuer = _issuer(FakeClock(ISSUED_AT))
    tokens = {issuer.issue_refresh_token() for _ in range(100)}

    assert len(tokens) == 100
    # 64 random bytes, base64url without padding
    assert all(len(token) == 86 for token in tokens)


def test_refresh_token_expiry_and_hash():
    issuer = _issuer(FakeClock(ISSUED_AT))
    assert issuer.refresh_token_expiry(ISSUED_AT) == ISSUED_AT + timedelta(days=7)

    digest = hash_refresh_token("abc")
    assert len(digest) == 64
    assert digest == hash_refresh_token("abc")
    assert digest != hash_refresh_token("abd")


def test_issuer_refuses_unusable_settings():
    valid = make_settings()

    broken_key = Settings.model_construct(**{**valid.model_dump(), "secret_key": ""})
    with pytest.raises(ConfigurationError):
        TokenIssuer(broken_key)

    broken_ttl = Settings.model_construct(**{**valid.model_dump(), "access_token_expire_minutes": 0})
    with pytest.raises(ConfigurationError):
        TokenIssuer(broken_ttl)
