"""DoseGuard FastAPI Application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doseguard.config import get_policy, settings
from doseguard.database import close_database
from doseguard.logging_config import get_logger, setup_logging
from doseguard.middleware import CorrelationIdMiddleware
from doseguard.routers import dose, health

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    policy = get_policy()
    logger.info(
        "DoseGuard API started",
        hypo_threshold=policy.hypo_threshold,
        rounding_increment=policy.rounding_increment,
        block_when_below_hypo=policy.block_when_below_hypo,
        require_acknowledgement_above_max=policy.require_acknowledgement_above_max,
        require_two_step_confirm_for_recording=(
            policy.require_two_step_confirm_for_recording
        ),
    )

    yield

    logger.info("Shutting down DoseGuard API...")
    await close_database()
    logger.info("DoseGuard API shutdown complete")


app = FastAPI(
    title="DoseGuard API",
    description="Insulin bolus dose calculator with safety gating",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(dose.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "DoseGuard API",
        "version": "0.1.0",
        "docs": "/docs",
    }
