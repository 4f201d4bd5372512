"""Shared API dependencies."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session, select

from journal.database import get_session
from journal.engine.journal import Journal
from journal.engine.records import Identity
from journal.models.user import User
from journal.services.auth import identity_for, token_subject

bearer_scheme = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Validate the bearer token and return the active user it names."""
    username = token_subject(credentials.credentials)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    user = session.exec(select(User).where(User.username == username)).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def get_journal(request: Request) -> Journal:
    """The application-wide command runner created in the lifespan."""
    return request.app.state.journal


async def get_identity(
    account_id: str,
    user: User = Depends(get_current_user),
    journal: Journal = Depends(get_journal),
) -> Identity:
    """Identity for an account the caller owns.

    Someone else's account, or one that does not exist, is NotFound
    before the route runs.
    """
    identity = identity_for(user, account_id)
    await journal.state(identity)
    return identity
