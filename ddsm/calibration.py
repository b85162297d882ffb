"""
Digitizer calibration and grey level normalisation.

Raw DDSM samples are converted to optical density with a per-digitizer
formula, then mapped to a 16-bit "normalised grey level" that is directly
comparable across all four digitizers:

- optical density 0 maps to 65535 (the raw data is inverted)
- optical density MAX_OD maps to 0
- a quadratic companding curve gives more precision to the bright
  (fatty, glandular, calcium) end of the range than to the air region
"""

import math
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, Optional

import numpy as np

from ddsm.errors import CalibrationRangeError, UsageError

# Optical density mapped to a normalised grey level of 0
MAX_OD = 4.0

# Largest value representable in the 16-bit output
MAX_GREY_LEVEL = 65535

# Number of distinct raw sample values
RAW_DOMAIN = 65536


class Digitizer(str, Enum):
    """The four scanners used to digitize the DDSM films."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def legacy_name(self) -> str:
        return _LEGACY_NAMES[self]

    @property
    def bits_per_pixel(self) -> int:
        """Bit depth the scanner digitized at (provenance only)."""
        # Only the DBA scanner digitized at 16 bits per pixel
        return 16 if self is Digitizer.A else 12

    @classmethod
    def parse(cls, value: str) -> "Digitizer":
        """
        Resolve a digitizer from its letter or its legacy name.

        Args:
            value: "A".."D" or one of "dba", "howtek-mgh", "howtek-ismd",
                "lumisys" (case-insensitive)

        Returns:
            The matching Digitizer

        Raises:
            UsageError: If the value names no digitizer
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        for digitizer in cls:
            if key.upper() == digitizer.value or key.lower() == digitizer.legacy_name:
                return digitizer
        names = ", ".join(f"{d.value} ({d.legacy_name})" for d in cls)
        raise UsageError(f"Unknown digitizer '{value}'; expected one of {names}")


_LEGACY_NAMES = {
    Digitizer.A: "dba",
    Digitizer.B: "howtek-mgh",
    Digitizer.C: "howtek-ismd",
    Digitizer.D: "lumisys",
}


def dba_optical_density(raw: int) -> float:
    """DBA scanner (digitizer A)."""
    if raw == 0:
        return 0.0
    # The equation goes negative above 64064 and exceeds MAX_OD below 4
    raw = min(max(raw, 4), 64064)
    return (math.log10(raw) - 4.80662) / -1.07553


def howtek_mgh_optical_density(raw: int) -> float:
    """Howtek scanner at MGH (digitizer B)."""
    raw = min(raw, 4006)
    return 3.789 - 0.00094568 * raw


def howtek_ismd_optical_density(raw: int) -> float:
    """Howtek scanner at ISMD (digitizer C)."""
    raw = min(raw, 4003)
    return 3.96604096240593 - 0.00099055807612 * raw


def lumisys_optical_density(raw: int) -> float:
    """Lumisys scanner (digitizer D)."""
    raw = min(max(raw, 61), 4097)
    return (raw - 4096.99) / -1009.01


CALIBRATION_FUNCTIONS: dict[Digitizer, Callable[[int], float]] = {
    Digitizer.A: dba_optical_density,
    Digitizer.B: howtek_mgh_optical_density,
    Digitizer.C: howtek_ismd_optical_density,
    Digitizer.D: lumisys_optical_density,
}


def optical_density(raw: int, digitizer: Digitizer) -> float:
    """
    Convert one raw sample to optical density.

    Out-of-domain samples are silently clamped to the bounds the
    digitizer's formula is valid for.
    """
    return CALIBRATION_FUNCTIONS[Digitizer.parse(digitizer)](int(raw))


def od_to_norm_grey_level(od: float) -> int:
    """
    Convert an optical density to a normalised, companded grey level.

    Args:
        od: Optical density

    Returns:
        Grey level in [0, 65535]

    Raises:
        CalibrationRangeError: If the scaled density is outside [0, 65535]
    """
    value = round((MAX_GREY_LEVEL / MAX_OD) * od)
    if value > MAX_GREY_LEVEL or value < 0:
        raise CalibrationRangeError(
            f"Optical density value was out of range; value was {od}"
        )

    # The digitizer output is inverted
    value = MAX_GREY_LEVEL - value

    # Quadratic companding: maps 0 to 0 and 65535 to 65535, exact integers
    return (value * value) // MAX_GREY_LEVEL


def normalize_sample(raw: int, digitizer: Digitizer) -> int:
    """Calibrate one raw sample and normalise it."""
    return od_to_norm_grey_level(optical_density(raw, digitizer))


@lru_cache(maxsize=None)
def _lookup_table(digitizer: Digitizer) -> np.ndarray:
    table = np.empty(RAW_DOMAIN, dtype=np.int32)
    for raw in range(RAW_DOMAIN):
        try:
            table[raw] = normalize_sample(raw, digitizer)
        except CalibrationRangeError:
            table[raw] = -1
    table.setflags(write=False)
    return table


def lookup_table(digitizer: Digitizer) -> np.ndarray:
    """
    Normalised grey level for every possible raw sample.

    Args:
        digitizer: Digitizer whose calibration to tabulate

    Returns:
        Read-only int32 array of length 65536; entries of -1 mark raw
        values whose normalisation raises CalibrationRangeError
    """
    return _lookup_table(Digitizer.parse(digitizer))


@dataclass
class CalibrationCheck:
    """Result of checking one digitizer over the full raw domain."""
    digitizer: Digitizer
    ok: bool
    first_bad_input: Optional[int] = None
    min_output: Optional[int] = None
    max_output: Optional[int] = None

    @property
    def message(self) -> str:
        if self.ok:
            return (
                f"{self.digitizer.legacy_name}: OK "
                f"(outputs {self.min_output}..{self.max_output})"
            )
        return (
            f"The calibration function for the {self.digitizer.legacy_name} "
            f"digitizer has a range problem; input {self.first_bad_input}"
        )


def check_calibration(digitizer: Optional[Digitizer] = None) -> list[CalibrationCheck]:
    """
    Run every raw value 0..65535 through the calibration of each digitizer.

    Args:
        digitizer: Only check this digitizer (all four if None)

    Returns:
        One CalibrationCheck per digitizer checked
    """
    digitizers = list(Digitizer) if digitizer is None else [Digitizer.parse(digitizer)]

    results = []
    for d in digitizers:
        table = lookup_table(d)
        bad = np.flatnonzero((table < 0) | (table > MAX_GREY_LEVEL))
        if len(bad):
            results.append(CalibrationCheck(d, ok=False, first_bad_input=int(bad[0])))
        else:
            results.append(CalibrationCheck(
                d, ok=True, min_output=int(table.min()), max_output=int(table.max())
            ))
    return results
