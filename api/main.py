"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger.json import JsonFormatter

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.routes import table
from config import config
from core.exceptions import DeckExhausted, RosterFull


def configure_logging() -> None:
    """Send engine and API logs to stderr, as JSON unless debugging."""
    root = logging.getLogger()
    if config.debug or not config.logging.json:
        logging.basicConfig(level=logging.DEBUG if config.debug else config.logging.level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(funcName)s %(lineno)d %(message)s"
        )
    )
    if root.hasHandlers():
        root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.logging.level)


configure_logging()
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


def _roster_full_handler(request: Request, exc: RosterFull) -> JSONResponse:
    """Report a full table to the caller."""
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def _deck_exhausted_handler(request: Request, exc: DeckExhausted) -> JSONResponse:
    """The round was aborted; the caller must start a new one."""
    logger.error("Round aborted for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=409,
        content={"detail": f"Round aborted, deck exhausted: {exc}"},
    )


app = FastAPI(
    title="Blackjack Table",
    description="Multi-player blackjack round engine API",
    version="0.1.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RosterFull, _roster_full_handler)
app.add_exception_handler(DeckExhausted, _deck_exhausted_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(table.router, prefix="/api/table", tags=["table"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=config.host, port=config.port, reload=config.debug)
