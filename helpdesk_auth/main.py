"""FastAPI application entrypoint. No business logic; only wiring, middleware and the sweeper lifecycle."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk_auth.api.v1 import router as v1_router
from helpdesk_auth.core.config import settings
from helpdesk_auth.core.database import SessionLocal
from helpdesk_auth.services.sweeper import SessionSweeper

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweeper: SessionSweeper | None = None
    if settings.SWEEP_ENABLED and settings.SWEEP_IN_PROCESS:
        sweeper = SessionSweeper(SessionLocal, settings)
        sweeper.start()
    app.state.sweeper = sweeper
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.stop()


app = FastAPI(
    title="Helpdesk Auth API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Helpdesk Auth API"}
