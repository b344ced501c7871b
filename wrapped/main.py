"""
Order Wrapped backend: FastAPI application entry-point.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wrapped.config import settings
from wrapped.database import Base, engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    try:
        os.makedirs(settings.DATA_DIR, exist_ok=True)
    except OSError as e:
        logger.warning("Could not create data dir %s: %s", settings.DATA_DIR, e)
    # Import models so Base.metadata knows about them
    import wrapped.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)

    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Order Wrapped",
    description="Receipt emails / order captures -> canonical orders -> Wrapped stats",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"service": "Order Wrapped", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ── Register API routers ─────────────────────────────────────────────────
from wrapped.routers.orders import router as orders_router  # noqa: E402
from wrapped.routers.captures import router as captures_router  # noqa: E402

app.include_router(orders_router, prefix="/api", tags=["Orders"])
app.include_router(captures_router, prefix="/api", tags=["Captures"])
