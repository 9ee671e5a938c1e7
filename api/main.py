"""
FastAPI application entry point.
Lifespan owns the companion orchestrator (and its in-memory state store) plus
the shared HTTP client for the aviation data proxies.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.companion import CompanionOrchestrator
from api.config import settings
from api.errors import ConfigurationError, InputValidationError, UpstreamError
from api.middleware import RequestLoggingMiddleware
from api.routers import chat, flights, weather
from api.services.aviation import new_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger("companion-api")


async def evict_idle_states(store, interval: int):
    """Periodically drop emotional states for users who went quiet."""
    while True:
        await asyncio.sleep(interval)
        store.evict_idle()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app.state.orchestrator = CompanionOrchestrator()
    app.state.http_client = new_client()
    eviction = asyncio.create_task(
        evict_idle_states(app.state.orchestrator.store, settings.state_eviction_interval_seconds)
    )
    yield
    # Shutdown
    eviction.cancel()
    await app.state.http_client.aclose()


app = FastAPI(
    title="Flight Companion API",
    description="Support for anxious flyers: emotional state, support modes and live flight context",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routers
app.include_router(chat.router, prefix="/api/v1/chat", tags=["Chat"])
app.include_router(weather.router, prefix="/api/v1/weather", tags=["Aviation Weather"])
app.include_router(flights.router, prefix="/api/v1/flights", tags=["Flight Tracking"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "llm_configured": bool(settings.anthropic_api_key)}


# Global error handlers
@app.exception_handler(InputValidationError)
async def input_error_handler(request: Request, exc: InputValidationError):
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": str(exc), "status_code": 400},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error on %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "Companion configuration error", "status_code": 500},
    )


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.warning("Upstream failure on %s: %s", request.url.path, exc)
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"ok": False, "error": "Data not found", "status_code": 404},
        )
    return JSONResponse(
        status_code=503,
        content={"ok": False, "error": "Service temporarily unavailable", "status_code": 503},
    )
