# app/api/endpoints/metrics.py

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import redis.asyncio as redis
import psutil
import time
from loguru import logger

from app.core.config import settings
from app.api.deps import get_db_session, require_super_admin
from app.models.user import User

router = APIRouter(prefix="/api/metrics", tags=["System & Metrics"])

# Track when the module is loaded for uptime calculation
START_TIME = time.time()


async def _database_status(session: AsyncSession) -> tuple[str, float]:
    started = time.time()
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return "Error", 0
    return "Connected", round((time.time() - started) * 1000, 2)


# ===================================================================
# 1. GENERAL SYSTEM HEALTH (public)
# ===================================================================
@router.get("")
async def system_metrics(session: AsyncSession = Depends(get_db_session)):
    db_status, db_latency = await _database_status(session)

    try:
        disk_usage = psutil.disk_usage("/").percent
    except OSError:
        disk_usage = 0

    return {
        "status": "Online",
        "environment": settings.ENV,
        "uptime": int(time.time() - START_TIME),
        "cpu": psutil.cpu_percent(interval=None),
        "ram": psutil.virtual_memory().percent,
        "disk": disk_usage,
        "database": db_status,
        "dbLatency": db_latency,
    }


# ===================================================================
# 2. RATE LIMIT STORE (superAdmin only)
# ===================================================================
@router.get("/redis")
async def redis_status(_: User = Depends(require_super_admin)):
    if not settings.REDIS_URL:
        return {"status": "Disabled", "message": "Redis is not configured; rate limits are kept in memory."}

    client = None
    try:
        client = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True, socket_connect_timeout=2)
        info = await client.info()
        limiter_keys = 0
        async for _key in client.scan_iter(match="LIMITER/*", count=100):
            limiter_keys += 1

        return {
            "status": "Connected",
            "redisVersion": info.get("redis_version"),
            "connectedClients": info.get("connected_clients"),
            "usedMemory": info.get("used_memory_human"),
            "activeRateLimits": limiter_keys,
        }
    except redis.ConnectionError:
        return {"status": "Offline", "message": "Redis server unreachable."}
    finally:
        if client:
            await client.aclose()
