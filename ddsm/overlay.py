"""
DDSM overlay file parsing.

An overlay file describes the abnormalities annotated on one mammogram:

    TOTAL_ABNORMALITIES 2
    ABNORMALITY 1
    LESION_TYPE MASS SHAPE IRREGULAR MARGINS ILL_DEFINED
    ASSESSMENT 4
    SUBTLETY 3
    PATHOLOGY MALIGNANT
    TOTAL_OUTLINES 2
    BOUNDARY
    1470 2165 1 1 1 2 ... #
    CORE
    1510 2210 0 0 7 ... #
    ABNORMALITY 2
    ...

Masks are not built here; each outline becomes a MaskGenerator that is
evaluated once the image dimensions are known.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Union

from ddsm.chaincode import parse_chain_code
from ddsm.errors import FileError, FormatError
from ddsm.models import Abnormality, MaskGenerator

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^\s*TOTAL_ABNORMALITIES\s+(\S+)")
MARKER_RE = re.compile(r"^\s*ABNORMALITY\s+(\d+)\s*$")
LESION_TYPE_RE = re.compile(r"^\s*LESION_TYPE\s+(.*?)\s*$")
ASSESSMENT_RE = re.compile(r"^\s*ASSESSMENT\s+(.*?)\s*$")
SUBTLETY_RE = re.compile(r"^\s*SUBTLETY\s+(.*?)\s*$")
PATHOLOGY_RE = re.compile(r"^\s*PATHOLOGY\s+(.*?)\s*$")
TOTAL_OUTLINES_RE = re.compile(r"^\s*TOTAL_OUTLINES\s+(.*?)\s*$")

BOUNDARY_KEYWORD = "BOUNDARY"
CORE_KEYWORD = "CORE"


def _to_int(value: str, field: str, number: int) -> int:
    try:
        return int(value)
    except ValueError:
        raise FormatError(
            f"Abnormality {number}: {field} is not an integer: {value!r}"
        ) from None


def parse_total_abnormalities(lines: list[str]) -> int:
    """
    Find the declared number of abnormalities.

    Raises:
        FormatError: If no TOTAL_ABNORMALITIES line exists or its value is
            not a non-negative integer
    """
    for line in lines:
        match = HEADER_RE.match(line)
        if match:
            value = match.group(1)
            if not (value.isascii() and value.isdigit()):
                raise FormatError(f"TOTAL_ABNORMALITIES is not a number: {value!r}")
            return int(value)
    raise FormatError("Overlay has no TOTAL_ABNORMALITIES line")


def find_abnormality_block(lines: list[str], number: int) -> list[str]:
    """
    Lines of one abnormality: from its marker up to the next one.

    Args:
        lines: All lines of the overlay file
        number: 1-based abnormality number

    Returns:
        The block, marker line included, next marker excluded

    Raises:
        FormatError: If the marker for this abnormality is missing
    """
    start = None
    for i, line in enumerate(lines):
        match = MARKER_RE.match(line)
        if not match:
            continue
        found = int(match.group(1))
        if start is None and found == number:
            start = i
        elif start is not None and found == number + 1:
            return lines[start:i]

    if start is None:
        raise FormatError(f"Overlay has no ABNORMALITY {number} section")
    return lines[start:]


def parse_outlines(
    outline_lines: list[str], number: int
) -> tuple[MaskGenerator, tuple[MaskGenerator, ...]]:
    """
    Split the outline section into a boundary and its cores.

    BOUNDARY and CORE keyword lines say what the following chain code is;
    any other non-blank line is a chain code.

    Returns:
        (boundary, cores)

    Raises:
        FormatError: Chain code before any keyword, missing or repeated
            boundary, or a malformed chain code
    """
    boundary: Optional[MaskGenerator] = None
    cores = []
    kind = None

    for line in outline_lines:
        if BOUNDARY_KEYWORD in line:
            kind = BOUNDARY_KEYWORD
            continue
        if CORE_KEYWORD in line:
            kind = CORE_KEYWORD
            continue
        if not line.strip():
            continue

        if kind is None:
            raise FormatError(
                f"Abnormality {number}: chain code without a BOUNDARY or CORE line"
            )

        generator = MaskGenerator(parse_chain_code(line))
        if kind == BOUNDARY_KEYWORD:
            if boundary is not None:
                raise FormatError(f"Abnormality {number} has more than one boundary")
            boundary = generator
        else:
            cores.append(generator)

    if boundary is None:
        raise FormatError(f"Abnormality {number} has no boundary chain code")
    return boundary, tuple(cores)


def parse_abnormality(block: list[str], number: int) -> Abnormality:
    """
    Parse the lines of one abnormality.

    Args:
        block: Lines from find_abnormality_block
        number: 1-based abnormality number

    Returns:
        Abnormality

    Raises:
        FormatError: Missing TOTAL_OUTLINES, non-integer fields or
            malformed outlines
    """
    lesion_types = []
    assessment = None
    subtlety = None
    pathology = None
    total_outlines = None
    outlines_start = None

    for i, line in enumerate(block):
        match = LESION_TYPE_RE.match(line)
        if match:
            lesion_types.append(match.group(1))
            continue

        match = ASSESSMENT_RE.match(line)
        if match:
            assessment = _to_int(match.group(1), "ASSESSMENT", number)
            continue

        match = SUBTLETY_RE.match(line)
        if match:
            subtlety = _to_int(match.group(1), "SUBTLETY", number)
            continue

        match = PATHOLOGY_RE.match(line)
        if match:
            pathology = match.group(1)
            continue

        match = TOTAL_OUTLINES_RE.match(line)
        if match and outlines_start is None:
            total_outlines = _to_int(match.group(1), "TOTAL_OUTLINES", number)
            outlines_start = i + 1

    if outlines_start is None:
        raise FormatError(f"Abnormality {number} has no TOTAL_OUTLINES line")

    boundary, cores = parse_outlines(block[outlines_start:], number)

    return Abnormality(
        number=number,
        lesion_types=tuple(lesion_types),
        boundary=boundary,
        cores=cores,
        assessment=assessment,
        subtlety=subtlety,
        pathology=pathology,
        total_outlines=total_outlines,
    )


def parse_overlay(lines: Iterable[str]) -> list[Abnormality]:
    """
    Parse the lines of an overlay file.

    Args:
        lines: Overlay file lines (trailing newlines allowed)

    Returns:
        Abnormalities in file order, as many as TOTAL_ABNORMALITIES declares

    Raises:
        FormatError: If the file is malformed
    """
    lines = [line.rstrip("\r\n") for line in lines]
    total = parse_total_abnormalities(lines)

    abnormalities = [
        parse_abnormality(find_abnormality_block(lines, number), number)
        for number in range(1, total + 1)
    ]

    logger.debug(
        f"Parsed {len(abnormalities)} abnormalities, "
        f"{sum(len(a.cores) for a in abnormalities)} cores"
    )
    return abnormalities


def parse_overlay_text(text: str) -> list[Abnormality]:
    """Parse overlay file contents held in a string."""
    return parse_overlay(text.splitlines())


def load_overlay(path: Union[str, Path]) -> list[Abnormality]:
    """
    Read and parse an overlay file.

    Raises:
        FileError: If the file cannot be read
        FormatError: If the file is malformed
    """
    try:
        with open(path, "r", encoding="ascii", errors="replace") as f:
            lines = f.readlines()
    except OSError as e:
        raise FileError(f"Could not read overlay file {path}: {e}") from e

    abnormalities = parse_overlay(lines)
    logger.info(f"Loaded {len(abnormalities)} abnormalities from {path}")
    return abnormalities
