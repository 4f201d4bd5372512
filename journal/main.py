"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from journal.config import settings
from journal.database import create_db_and_tables, engine
from journal.engine.journal import Journal
from journal.engine.persistence import SqlPersistence
from journal.errors import (
    AuthenticationFailed,
    ConfirmationRequired,
    ConflictingEdit,
    InsufficientFunds,
    JournalError,
    LoginLocked,
    NotFound,
    PersistenceFailure,
    PolicyViolation,
    ValidationError,
)
from journal.utils.logging import setup_logging
from journal.api import auth, accounts, trades, analytics, backup, instruments, system

logger = logging.getLogger(__name__)

# Most specific first
_STATUS_CODES: list[tuple[type[JournalError], int]] = [
    (ValidationError, 422),
    (LoginLocked, 423),
    (AuthenticationFailed, 401),
    (ConfirmationRequired, 409),
    (PolicyViolation, 403),
    (InsufficientFunds, 409),
    (ConflictingEdit, 409),
    (NotFound, 404),
    (PersistenceFailure, 503),
]


def status_for(error: JournalError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()
    if getattr(app.state, "journal", None) is None:
        app.state.journal = Journal(SqlPersistence(engine))
    logger.info(f"Trading journal ready (database {settings.database_url.split(':', 1)[0]})")

    yield


app = FastAPI(
    title="Trading Journal",
    description="Forex/CFD trading journal with risk gate and weekly analytics",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError):
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


# Mount routers
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(trades.router)
app.include_router(analytics.router)
app.include_router(backup.router)
app.include_router(instruments.router)
app.include_router(system.router)
