"""
Runtime configuration, read from the environment.
"""

import os

# Appended to the raw filename to name the converted PNM file
OUTPUT_SUFFIX = os.getenv("DDSM_OUTPUT_SUFFIX", "-converted.pnm")

# Samples decoded per read when streaming a raw file
CHUNK_SAMPLES = int(os.getenv("DDSM_CHUNK_SAMPLES", "65536"))

LOG_LEVEL = os.getenv("DDSM_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
