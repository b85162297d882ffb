"""
Overlay API endpoints
"""

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from ddsm.errors import check_dimensions
from ddsm.masks import encode_mask_png, mask_area, mask_to_bbox, mask_to_rle
from ddsm.overlay import parse_overlay_text
from ddsm.validate import validate_overlay
from backend.config import MAX_MASK_PIXELS

router = APIRouter()


class ParseOverlayRequest(BaseModel):
    text: str
    rows: Optional[int] = None
    cols: Optional[int] = None


class AbnormalityResponse(BaseModel):
    number: int
    lesion_types: list[str]
    assessment: Optional[int] = None
    subtlety: Optional[int] = None
    pathology: Optional[str] = None
    total_outlines: int
    boundary: str
    cores: list[str]


class WarningResponse(BaseModel):
    abnormality: int
    severity: str
    code: str
    message: str


class ParseOverlayResponse(BaseModel):
    total_abnormalities: int
    abnormalities: list[AbnormalityResponse]
    warnings: list[WarningResponse]


class MaskRequest(BaseModel):
    text: str
    abnormality: int = 1  # 1-based
    outline: Literal["boundary", "core"] = "boundary"
    core_index: int = 0
    rows: int
    cols: int
    format: Literal["png", "rle"] = "png"


class MaskRleResponse(BaseModel):
    rle: dict
    area: int
    bbox: list[float]


@router.post("/parse", response_model=ParseOverlayResponse)
async def parse_overlay(request: ParseOverlayRequest):
    """Parse overlay text into abnormality records."""
    abnormalities = parse_overlay_text(request.text)
    report = validate_overlay(abnormalities, request.rows, request.cols)

    return ParseOverlayResponse(
        total_abnormalities=len(abnormalities),
        abnormalities=[AbnormalityResponse(**a.to_dict()) for a in abnormalities],
        warnings=[
            WarningResponse(**vars(w))
            for w in report.errors + report.warnings + report.info
        ],
    )


@router.post("/mask")
def generate_mask(request: MaskRequest):
    """Build the mask of one outline, as a PNG or as RLE."""
    check_dimensions(request.rows, request.cols)
    if request.rows * request.cols > MAX_MASK_PIXELS:
        raise HTTPException(
            status_code=400,
            detail=f"Mask of {request.rows}x{request.cols} exceeds {MAX_MASK_PIXELS} pixels",
        )

    abnormalities = parse_overlay_text(request.text)
    if not 1 <= request.abnormality <= len(abnormalities):
        raise HTTPException(status_code=404, detail="Abnormality not found")
    abnormality = abnormalities[request.abnormality - 1]

    if request.outline == "boundary":
        generator = abnormality.boundary
    elif 0 <= request.core_index < len(abnormality.cores):
        generator = abnormality.cores[request.core_index]
    else:
        raise HTTPException(status_code=404, detail="Core not found")

    mask = generator.generate(request.rows, request.cols)

    if request.format == "rle":
        return MaskRleResponse(
            rle=mask_to_rle(mask), area=mask_area(mask), bbox=mask_to_bbox(mask)
        )
    return Response(content=encode_mask_png(mask), media_type="image/png")
