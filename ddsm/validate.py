"""
QA checks for parsed abnormalities.

Parsing only rejects what cannot be interpreted. These checks flag
records that parse but look wrong:
- Lesion type, assessment, subtlety or pathology missing
- Assessment outside the BI-RADS range 0-5, subtlety outside 1-5
- TOTAL_OUTLINES disagreeing with the outlines actually present
- Outline start points outside the image
"""

from dataclasses import dataclass
from typing import Optional

from ddsm.models import Abnormality

ASSESSMENT_RANGE = (0, 5)
SUBTLETY_RANGE = (1, 5)


@dataclass
class ValidationWarning:
    """A validation warning."""
    abnormality: int
    severity: str  # 'error', 'warning', 'info'
    code: str
    message: str


def validate_abnormality(
    abnormality: Abnormality,
    rows: Optional[int] = None,
    cols: Optional[int] = None,
) -> list[ValidationWarning]:
    """
    Validate a single abnormality.

    Args:
        abnormality: The abnormality to validate
        rows: Image height, enables the bounds check
        cols: Image width, enables the bounds check

    Returns:
        List of validation warnings
    """
    warnings = []
    number = abnormality.number

    def warn(severity: str, code: str, message: str):
        warnings.append(ValidationWarning(number, severity, code, message))

    if not abnormality.lesion_types:
        warn('warning', 'NO_LESION_TYPE', 'Abnormality has no LESION_TYPE line')

    if abnormality.assessment is None:
        warn('warning', 'NO_ASSESSMENT', 'Abnormality has no ASSESSMENT')
    elif not ASSESSMENT_RANGE[0] <= abnormality.assessment <= ASSESSMENT_RANGE[1]:
        warn('warning', 'ASSESSMENT_OUT_OF_RANGE',
             f'Assessment {abnormality.assessment} is outside {ASSESSMENT_RANGE}')

    if abnormality.subtlety is None:
        warn('warning', 'NO_SUBTLETY', 'Abnormality has no SUBTLETY')
    elif not SUBTLETY_RANGE[0] <= abnormality.subtlety <= SUBTLETY_RANGE[1]:
        warn('warning', 'SUBTLETY_OUT_OF_RANGE',
             f'Subtlety {abnormality.subtlety} is outside {SUBTLETY_RANGE}')

    if abnormality.pathology is None:
        warn('warning', 'NO_PATHOLOGY', 'Abnormality has no PATHOLOGY')

    found = len(abnormality.outlines)
    if abnormality.total_outlines != found:
        warn('info', 'OUTLINE_COUNT_MISMATCH',
             f'TOTAL_OUTLINES is {abnormality.total_outlines} but {found} outline(s) were found')

    if rows is not None and cols is not None:
        for i, outline in enumerate(abnormality.outlines):
            row, col = outline.chain_code.start
            if not (0 <= row < rows and 0 <= col < cols):
                name = 'boundary' if i == 0 else f'core {i}'
                warn('error', 'OUTLINE_OUT_OF_BOUNDS',
                     f'The {name} starts at (row={row}, col={col}), outside a {rows}x{cols} image')

    return warnings


@dataclass
class OverlayValidationReport:
    """Validation report for an entire overlay."""
    total_abnormalities: int
    errors: list[ValidationWarning]
    warnings: list[ValidationWarning]
    info: list[ValidationWarning]

    @property
    def is_valid(self) -> bool:
        """Overlay is valid if there are no errors."""
        return len(self.errors) == 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def summary(self) -> str:
        """Get a summary string."""
        return (
            f"Validation Report:\n"
            f"  Abnormalities: {self.total_abnormalities}\n"
            f"  Errors: {self.error_count}\n"
            f"  Warnings: {self.warning_count}\n"
            f"  Valid: {'Yes' if self.is_valid else 'No'}"
        )


def validate_overlay(
    abnormalities: list[Abnormality],
    rows: Optional[int] = None,
    cols: Optional[int] = None,
) -> OverlayValidationReport:
    """Validate every abnormality of an overlay and group by severity."""
    all_warnings = []
    for abnormality in abnormalities:
        all_warnings.extend(validate_abnormality(abnormality, rows, cols))

    return OverlayValidationReport(
        total_abnormalities=len(abnormalities),
        errors=[w for w in all_warnings if w.severity == 'error'],
        warnings=[w for w in all_warnings if w.severity == 'warning'],
        info=[w for w in all_warnings if w.severity == 'info'],
    )
