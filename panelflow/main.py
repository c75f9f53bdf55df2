"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from panelflow.api.container import get_container
from panelflow.api.dependencies import limiter
from panelflow.api.routes.folders import router as folders_router
from panelflow.api.routes.pipeline import router as pipeline_router
from panelflow.api.routes.summaries import router as summaries_router
from panelflow.shared.logging import setup_logging

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config and set up logging. Shutdown: close agent clients."""
    container = get_container()
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )
    log.info("startup_complete", agent_backend=c.agents.backend)
    yield
    log.info("shutdown_begin")
    try:
        await container.close()
    except Exception:  # noqa: BLE001
        log.debug("agent_client_close_error", exc_info=True)
    log.info("shutdown_complete")


app = FastAPI(
    title="PanelFlow",
    version="0.1.0",
    description="Pipeline execution engine for agent dashboard panels",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_container().config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(folders_router)
app.include_router(pipeline_router)
app.include_router(summaries_router)


@app.get("/health")
@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Health check with agent backend availability."""
    container = get_container()
    return {
        "status": "ok",
        "service": "panelflow",
        "agent_backend": container.config.agents.backend,
        "agent_available": await container.agent_invoker.is_available(),
    }
