# app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import sys

from app.core.database import test_connection, init_db
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.rate_limiter import limiter
from app.core.seeding_logic import seed_all

# Routers
from app.api.endpoints import (
    auth as auth_router,
    users as users_router,
    locations as locations_router,
    departments as departments_router,
    uploads as uploads_router,
    metrics as metrics_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    level=settings.LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="Campus Virtual Tour Backend",
    version="1.0.0",
    description="REST backend for the campus virtual tour: locations, departments, users and media.",
)

# ------------------------------------------------------------
# ERRORS & RATE LIMITING
# ------------------------------------------------------------
register_exception_handlers(app)
app.state.limiter = limiter

# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
origins = ["http://localhost:5173", "http://localhost:3000"]
if settings.FRONTEND_URL and settings.FRONTEND_URL.rstrip("/") not in origins:
    origins.append(settings.FRONTEND_URL.rstrip("/"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(locations_router.router)
app.include_router(departments_router.router)
app.include_router(uploads_router.router)
app.include_router(metrics_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting Campus Virtual Tour Backend...")

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    try:
        await init_db()
        logger.success("Database tables ready.")
    except Exception as e:
        logger.warning(f"Table initialization encountered an issue: {e}")

    # 3) Super admin + default departments
    await seed_all()

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "success": True,
        "message": "Campus Virtual Tour API is running",
        "data": {
            "service": app.title,
            "version": app.version,
            "environment": settings.ENV,
            "docs": "/docs",
        },
    }
