"""
RentCar API application

Usage:
    uvicorn rentcar.main:app --reload
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentcar.api.v1 import admin, bookings, cars, jobs, users
from rentcar.core.config import settings
from rentcar.core.firebase import get_db
from rentcar.core.scheduler import get_scheduler_status, start_scheduler, stop_scheduler
from rentcar.services.inventory import session_registry
from rentcar.services.users import ensure_default_admin

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚗 Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    try:
        await ensure_default_admin(get_db())
    except Exception as e:
        logger.error(f"Could not seed default admin: {e}")

    if settings.RECONCILE_SCHEDULER_ENABLED:
        start_scheduler()

    yield

    # pending quantity bursts are saved, not dropped
    await session_registry.flush_all()
    stop_scheduler()
    logger.info("👋 Shutdown complete")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(cars.router, prefix="/api/cars", tags=["cars"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])


@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "scheduler": get_scheduler_status()
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
