"""
Poker Settlement Engine — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from poker_settlement.config import get_settings
from poker_settlement.exceptions import PersistenceError, SettlementBusyError
from poker_settlement.logging_config import configure_logging
from poker_settlement.api.health import router as health_router
from poker_settlement.api.games import router as games_router
from poker_settlement.api.settlements import router as settlements_router
from poker_settlement.api.audit import router as audit_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("poker_settlement.main")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ledger totals, balance checks and minimal debt settlement for poker games",
)


@app.exception_handler(SettlementBusyError)
def settlement_busy_handler(request: Request, exc: SettlementBusyError):
    """Another caller is calculating this game; the client should retry."""
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc)},
        headers={"Retry-After": str(exc.retry_after)},
    )


@app.exception_handler(PersistenceError)
def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Request %s %s failed to persist: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "The change could not be stored and was rolled back"},
    )


# Register routers
app.include_router(health_router)
app.include_router(games_router)
app.include_router(settlements_router)
app.include_router(audit_router)
