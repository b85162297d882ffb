"""
FastAPI application entry point
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ddsm import __version__
from ddsm.errors import DDSMError
from backend.config import CORS_ORIGINS, API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT
from backend.api import calibration, convert, overlays

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("DDSM API starting...")
    yield
    # Shutdown
    logger.info("DDSM API shutting down...")


app = FastAPI(
    title="DDSM API",
    description="Normalised DDSM images and ground-truth masks",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(DDSMError)
async def ddsm_exception_handler(request: Request, exc: DDSMError):
    """Report reconstruction errors with their kind."""
    logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc}")
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": str(exc), "error": exc.kind},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}:")
    logger.error(traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(calibration.router, prefix="/api/calibration", tags=["Calibration"])
app.include_router(convert.router, prefix="/api/convert", tags=["Convert"])
app.include_router(overlays.router, prefix="/api/overlays", tags=["Overlays"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "ddsm-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
