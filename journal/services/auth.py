"""Who is acting: password and TOTP login, bearer tokens, and the identity
handed to the journal.

Login failures are counted on the user row. Once ``max_failed_logins`` is
reached the user is locked out until an admin runs ``unlock-user``.
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
import pyotp
from sqlmodel import Session, select

from journal.config import settings
from journal.engine.records import Identity
from journal.errors import AuthenticationFailed, LoginLocked, NotFound
from journal.models.user import User

logger = logging.getLogger(__name__)

TOTP_ISSUER = "Trading Journal"


def hash_password(password: str) -> str:
    pw = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    pw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(pw, hashed.encode("utf-8"))


def issue_token(username: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": username,
        "iss": settings.jwt_issuer,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_subject(token: str) -> str | None:
    """Username carried by a live token this journal issued, else None."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None
    return payload.get("sub") or None


def identity_for(user: User, account_id: str) -> Identity:
    return Identity(user_id=user.username, account_id=account_id)


def verify_totp(secret: str, code: str) -> bool:
    return pyotp.TOTP(secret).verify(code, valid_window=1)


def generate_totp_secret() -> str:
    return pyotp.random_base32()


def get_totp_uri(secret: str, username: str) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=username, issuer_name=TOTP_ISSUER)


def _find_user(session: Session, username: str) -> User | None:
    return session.exec(select(User).where(User.username == username)).first()


def authenticate(session: Session, username: str, password: str, totp_code: str) -> User:
    """Check password and TOTP code, returning the user on success.

    Unknown and inactive users get the same answer as a wrong password.
    A locked user is refused before the credentials are looked at.
    """
    user = _find_user(session, username)
    if user is None or not user.is_active:
        logger.warning(f"[auth] Login refused for unknown or inactive user '{username}'")
        raise AuthenticationFailed("Invalid credentials")

    if user.failed_logins >= settings.max_failed_logins:
        logger.warning(f"[auth] Login refused for locked user '{username}'")
        raise LoginLocked(f"Too many failed logins for '{username}'")

    if not verify_password(password, user.hashed_password) or not verify_totp(user.totp_secret, totp_code):
        user.failed_logins += 1
        session.add(user)
        session.commit()
        logger.warning(
            f"[auth] Failed login for '{username}' ({user.failed_logins}/{settings.max_failed_logins})"
        )
        raise AuthenticationFailed("Invalid credentials")

    user.failed_logins = 0
    user.last_login_at = datetime.now(timezone.utc)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"[auth] '{username}' logged in")
    return user


def unlock_user(session: Session, username: str) -> User:
    user = _find_user(session, username)
    if user is None:
        raise NotFound(f"User '{username}' not found")
    user.failed_logins = 0
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"[auth] '{username}' unlocked")
    return user
