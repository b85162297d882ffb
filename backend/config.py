"""
Backend configuration
"""

import os

from ddsm.config import LOG_FORMAT, LOG_LEVEL

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CORS origins (frontend URL)
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
).split(",")

# Largest mask the API will build, in pixels (full-field DDSM images are ~30M)
MAX_MASK_PIXELS = int(os.getenv("MAX_MASK_PIXELS", str(64 * 1024 * 1024)))
