"""System API — health check and current user."""

from fastapi import APIRouter, Depends

from journal.api.deps import get_current_user
from journal.models.user import User

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/me")
def whoami(user: User = Depends(get_current_user)):
    return {"username": user.username, "last_login_at": user.last_login_at}
