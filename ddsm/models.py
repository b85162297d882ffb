"""
Data models for DDSM ground truth.

Dataclasses representing the abnormalities recorded in an overlay file.
All of them are immutable once parsed.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ddsm.chaincode import ChainCode, rasterize_chain_code


@dataclass(frozen=True)
class MaskGenerator:
    """
    Deferred mask for one outline.

    Masks are large and the image dimensions live in a separate file, so
    only the chain code is stored; generate() builds a fresh mask on every
    call.
    """
    chain_code: ChainCode

    def generate(self, rows: int, cols: int) -> np.ndarray:
        """
        Build the filled binary mask for an image of the given size.

        Args:
            rows: Image height
            cols: Image width

        Returns:
            uint8 mask of shape (rows, cols), 1 inside the region
        """
        return rasterize_chain_code(self.chain_code, rows, cols)


@dataclass(frozen=True)
class Abnormality:
    """One radiologist-annotated finding."""
    number: int  # 1-based position in the overlay file
    lesion_types: tuple[str, ...]
    boundary: MaskGenerator
    cores: tuple[MaskGenerator, ...] = ()
    assessment: Optional[int] = None
    subtlety: Optional[int] = None
    pathology: Optional[str] = None
    total_outlines: int = 0

    @property
    def outlines(self) -> tuple[MaskGenerator, ...]:
        """The boundary followed by the cores."""
        return (self.boundary, *self.cores)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view, chain codes in their text encoding."""
        return {
            "number": self.number,
            "lesion_types": list(self.lesion_types),
            "assessment": self.assessment,
            "subtlety": self.subtlety,
            "pathology": self.pathology,
            "total_outlines": self.total_outlines,
            "boundary": self.boundary.chain_code.to_text(),
            "cores": [core.chain_code.to_text() for core in self.cores],
        }
