"""
Raw to PGM conversion API endpoints
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ddsm.calibration import Digitizer
from ddsm.convert import convert_raw_to_pnm

router = APIRouter()


class ConvertRequest(BaseModel):
    raw_path: str
    rows: int
    cols: int
    digitizer: str  # "A".."D" or legacy name
    output_path: Optional[str] = None


class ConvertResponse(BaseModel):
    output_path: str
    rows: int
    cols: int
    digitizer: str
    bits_per_pixel: int


@router.post("", response_model=ConvertResponse)
def convert(request: ConvertRequest):
    """
    Convert a raw file on the server's filesystem to a normalised PGM file.

    On error the output file may be partially written and must be ignored.
    """
    digitizer = Digitizer.parse(request.digitizer)
    output = convert_raw_to_pnm(
        request.raw_path,
        rows=request.rows,
        cols=request.cols,
        digitizer=digitizer,
        output_path=request.output_path,
    )
    return ConvertResponse(
        output_path=str(output),
        rows=request.rows,
        cols=request.cols,
        digitizer=digitizer.value,
        bits_per_pixel=digitizer.bits_per_pixel,
    )
