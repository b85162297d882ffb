"""
DDSM ground truth - normalised images from raw scans and masks from overlays
"""

__version__ = "0.1.0"

from ddsm.errors import (
    DDSMError, UsageError, RangeError, FileError, CalibrationRangeError,
    SizeMismatchError, FormatError, DimensionMismatchError, OutOfBoundsError,
)
from ddsm.calibration import Digitizer, od_to_norm_grey_level, normalize_sample, check_calibration
from ddsm.raw import decode_raw_stream, decode_raw_file
from ddsm.pnm import write_pnm, read_pnm
from ddsm.convert import convert_raw_to_pnm
from ddsm.models import MaskGenerator, Abnormality
from ddsm.chaincode import ChainCode, parse_chain_code, rasterize_chain_code
from ddsm.overlay import parse_overlay, parse_overlay_text, load_overlay

__all__ = [
    "DDSMError", "UsageError", "RangeError", "FileError", "CalibrationRangeError",
    "SizeMismatchError", "FormatError", "DimensionMismatchError", "OutOfBoundsError",
    "Digitizer", "od_to_norm_grey_level", "normalize_sample", "check_calibration",
    "decode_raw_stream", "decode_raw_file",
    "write_pnm", "read_pnm",
    "convert_raw_to_pnm",
    "ChainCode", "MaskGenerator", "Abnormality",
    "parse_chain_code", "rasterize_chain_code",
    "parse_overlay", "parse_overlay_text", "load_overlay",
]
