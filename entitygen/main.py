import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from entitygen.core.config import settings
from entitygen.core.logging import configure_logging
from entitygen.api.routes import router as api_router

configure_logging()
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    log.info("Starting preview API server...")
    yield
    log.info("Shutting down preview API server...")


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan
)
app.include_router(api_router, prefix="/v1")
