"""Login, tokens and the lockout counter."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pyotp
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session

from journal.config import settings
from journal.database import get_session
from journal.errors import AuthenticationFailed, LoginLocked, NotFound
from journal.main import app
from journal.models.user import User
from journal.services.auth import (
    authenticate,
    hash_password,
    identity_for,
    issue_token,
    token_subject,
    unlock_user,
    verify_password,
)

PASSWORD = "correct horse"


def _wrong_code(secret: str) -> str:
    # an hour away is outside the one-step verify window
    return pyotp.TOTP(secret).at(datetime.now(timezone.utc) - timedelta(hours=1))


@pytest.fixture
def session(sql_engine):
    with Session(sql_engine) as session:
        yield session


@pytest.fixture
def user(session):
    user = User(
        username="alice",
        hashed_password=hash_password(PASSWORD),
        totp_secret=pyotp.random_base32(),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def test_password_hash_round_trip():
    hashed = hash_password(PASSWORD)
    assert hashed != PASSWORD
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("wrong", hashed)


def test_token_names_its_user():
    assert token_subject(issue_token("alice")) == "alice"


def test_token_from_another_issuer_is_refused():
    expire = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode(
        {"sub": "alice", "iss": "someone-else", "exp": expire},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    assert token_subject(token) is None


def test_expired_or_garbled_token_is_refused():
    with patch.object(settings, "jwt_expire_minutes", -1):
        expired = issue_token("alice")
    assert token_subject(expired) is None
    assert token_subject("not-a-token") is None


def test_identity_pairs_username_with_account(user):
    identity = identity_for(user, "acc-1")
    assert identity.user_id == "alice"
    assert identity.account_id == "acc-1"


def test_authenticate_success_resets_counter(session, user):
    user.failed_logins = 2
    session.add(user)
    session.commit()

    code = pyotp.TOTP(user.totp_secret).now()
    logged_in = authenticate(session, "alice", PASSWORD, code)

    assert logged_in.id == user.id
    assert logged_in.failed_logins == 0
    assert logged_in.last_login_at is not None


@pytest.mark.parametrize("bad", ["password", "code"])
def test_authenticate_failure_is_counted(session, user, bad):
    password = "wrong" if bad == "password" else PASSWORD
    code = _wrong_code(user.totp_secret) if bad == "code" else pyotp.TOTP(user.totp_secret).now()

    with pytest.raises(AuthenticationFailed, match="Invalid credentials"):
        authenticate(session, "alice", password, code)

    session.refresh(user)
    assert user.failed_logins == 1


def test_unknown_and_inactive_users_look_alike(session, user):
    user.is_active = False
    session.add(user)
    session.commit()
    code = pyotp.TOTP(user.totp_secret).now()

    with pytest.raises(AuthenticationFailed) as inactive:
        authenticate(session, "alice", PASSWORD, code)
    with pytest.raises(AuthenticationFailed) as unknown:
        authenticate(session, "bob", PASSWORD, code)

    assert inactive.value.message == unknown.value.message
    assert not isinstance(inactive.value, LoginLocked)


def test_lockout_after_repeated_failures(session, user, caplog):
    code = pyotp.TOTP(user.totp_secret).now()
    with patch.object(settings, "max_failed_logins", 2):
        for _ in range(2):
            with pytest.raises(AuthenticationFailed):
                authenticate(session, "alice", "wrong", code)

        # the right credentials no longer help
        with pytest.raises(LoginLocked):
            authenticate(session, "alice", PASSWORD, code)
        assert "locked user 'alice'" in caplog.text

        unlock_user(session, "alice")
        assert authenticate(session, "alice", PASSWORD, code).failed_logins == 0


def test_unlock_unknown_user(session):
    with pytest.raises(NotFound):
        unlock_user(session, "nobody")


@pytest.fixture
def login_client(sql_engine, user):
    def _session():
        with Session(sql_engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_login_endpoint(login_client, user):
    code = pyotp.TOTP(user.totp_secret).now()
    resp = login_client.post(
        "/api/auth/login", json={"username": "alice", "password": PASSWORD, "totp_code": code},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.jwt_expire_minutes * 60
    assert token_subject(body["access_token"]) == "alice"


def test_login_endpoint_rejects_bad_credentials(login_client, user):
    code = pyotp.TOTP(user.totp_secret).now()
    resp = login_client.post(
        "/api/auth/login", json={"username": "alice", "password": "wrong", "totp_code": code},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "authentication_failed"

    with patch.object(settings, "max_failed_logins", 1):
        resp = login_client.post(
            "/api/auth/login", json={"username": "alice", "password": PASSWORD, "totp_code": code},
        )
    assert resp.status_code == 423
    assert resp.json()["error"] == "login_locked"
