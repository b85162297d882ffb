"""
Calibration API endpoints
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ddsm.calibration import check_calibration

router = APIRouter()


class CalibrationCheckResponse(BaseModel):
    digitizer: str
    legacy_name: str
    ok: bool
    first_bad_input: Optional[int] = None
    min_output: Optional[int] = None
    max_output: Optional[int] = None


@router.get("/check", response_model=list[CalibrationCheckResponse])
def check(digitizer: Optional[str] = None):
    """Run every raw value through the calibration of each digitizer."""
    return [
        CalibrationCheckResponse(
            digitizer=result.digitizer.value,
            legacy_name=result.digitizer.legacy_name,
            ok=result.ok,
            first_bad_input=result.first_bad_input,
            min_output=result.min_output,
            max_output=result.max_output,
        )
        for result in check_calibration(digitizer)
    ]
