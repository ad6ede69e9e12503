import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from milevalue.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "milevalue.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from milevalue.routers import awards

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.award_provider_base_url:
        logger.info(f"Award provider: {settings.award_provider_base_url}")
    else:
        logger.warning("Award provider not configured, enrichment returns no records")
    logger.info(f"Default per-mile value: {settings.per_mile_value}")

    yield

    # Shutdown
    from milevalue.services.award_provider_client import award_provider_client
    from milevalue.services.cache_service import cache_service
    await award_provider_client.close()
    await cache_service.close()


app = FastAPI(
    title="MileValue",
    description="Award and mileage valuation against cash fares",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(awards.router, prefix="/api/awards", tags=["awards"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "milevalue", "per_mile_value": settings.per_mile_value}
