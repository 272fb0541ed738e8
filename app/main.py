# app/main.py
"""
FastAPI application entry point.
Includes request timing, global error handler, all routers, and the reservation feed lifecycle.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import console, health, notifications, reservations
from app.database import create_tables
from app.config import settings
from app.dependencies import get_console_registry, get_feed
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Seilerstubb Reservation Triage API",
    description="Live reservations console — new-booking alerts, confirm/reject, guest emails.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (staff console runs on the website origin) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the website origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(reservations.router,  prefix="/api/v1", tags=["📅 Reservations"])
app.include_router(console.router,       prefix="/api/v1", tags=["🔔 Live Console"])
app.include_router(notifications.router, prefix="/api/v1", tags=["✉️ Guest Emails"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Reservation triage backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"✉️  Email backend: {settings.EMAIL_BACKEND}")
    logger.info(f"👤 Operators configured: {len(settings.OPERATOR_TOKENS)}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_HOST}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")
    get_feed().start()
    get_console_registry().start()


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Reservation triage backend shutting down...")
    await get_console_registry().stop()
    await get_feed().stop()
