"""
Chain code parsing and rasterization.

A chain code walks the outline of a region one pixel at a time. Each
direction symbol is an 8-connected compass step:

    7 0 1
    6 . 2
    5 4 3
"""

from dataclasses import dataclass

import numpy as np
from scipy import ndimage

from ddsm.errors import (
    DimensionMismatchError,
    FormatError,
    OutOfBoundsError,
    check_dimensions,
)

# Terminates every chain code in an overlay file
CHAIN_CODE_SENTINEL = "#"

# (row, col) step for each direction symbol
DIRECTION_OFFSETS = {
    0: (-1, 0),
    1: (-1, 1),
    2: (0, 1),
    3: (1, 1),
    4: (1, 0),
    5: (1, -1),
    6: (0, -1),
    7: (-1, -1),
}


@dataclass(frozen=True)
class ChainCode:
    """
    A region outline: a start pixel plus 8-connected direction steps.

    The overlay format lists the start point column first, then row.
    Coordinates are zero-based array indices.
    """
    start_col: int
    start_row: int
    directions: tuple[int, ...] = ()

    @property
    def start(self) -> tuple[int, int]:
        """Start pixel as (row, col)."""
        return self.start_row, self.start_col

    def to_text(self) -> str:
        """Encode back to the overlay line format."""
        tokens = [self.start_col, self.start_row, *self.directions]
        return " ".join(str(t) for t in tokens) + f" {CHAIN_CODE_SENTINEL}"


def parse_chain_code(text: str) -> ChainCode:
    """
    Parse one chain code line from an overlay file.

    Args:
        text: "<col> <row> <d1> <d2> ... #"

    Returns:
        ChainCode

    Raises:
        FormatError: Missing sentinel, non-integer tokens, no start point,
            or a direction outside 0..7
    """
    text = text.strip()
    if not text.endswith(CHAIN_CODE_SENTINEL):
        raise FormatError(
            f'Chain codes must end in a "{CHAIN_CODE_SENTINEL}" character: {text[:40]!r}'
        )

    tokens = text[:-1].split()
    try:
        numbers = [int(t) for t in tokens]
    except ValueError as e:
        raise FormatError(f"Chain code contains a non-integer token: {e}") from e

    if len(numbers) < 2:
        raise FormatError(f"Chain code has no start point: {text!r}")

    directions = tuple(numbers[2:])
    for i, d in enumerate(directions):
        if d not in DIRECTION_OFFSETS:
            raise FormatError(f"Invalid direction {d} at step {i} of chain code")

    return ChainCode(start_col=numbers[0], start_row=numbers[1], directions=directions)


def trace_chain_code(chain_code: ChainCode, rows: int, cols: int) -> np.ndarray:
    """
    Mark the outline pixels of a chain code.

    Args:
        chain_code: Outline to trace
        rows: Image height
        cols: Image width

    Returns:
        uint8 array of shape (rows, cols) with the outline set to 1

    Raises:
        RangeError: If rows or cols is not positive
        OutOfBoundsError: If the outline leaves the image
    """
    check_dimensions(rows, cols)

    row, col = chain_code.start
    if not (0 <= row < rows and 0 <= col < cols):
        raise OutOfBoundsError(
            f"Chain code starts at (row={row}, col={col}), outside a {rows}x{cols} image"
        )

    outline = np.zeros((rows, cols), dtype=np.uint8)
    outline[row, col] = 1
    for step, direction in enumerate(chain_code.directions):
        d_row, d_col = DIRECTION_OFFSETS[direction]
        row += d_row
        col += d_col
        if not (0 <= row < rows and 0 <= col < cols):
            raise OutOfBoundsError(
                f"Chain code step {step} moves to (row={row}, col={col}), "
                f"outside a {rows}x{cols} image"
            )
        outline[row, col] = 1

    return outline


def rasterize_chain_code(chain_code: ChainCode, rows: int, cols: int) -> np.ndarray:
    """
    Build the filled mask of the region a chain code encloses.

    Args:
        chain_code: Region outline
        rows: Image height
        cols: Image width

    Returns:
        uint8 mask of shape (rows, cols), 1 on and inside the outline
    """
    outline = trace_chain_code(chain_code, rows, cols)

    # Background is 4-connected, so a diagonal outline step still closes the region
    mask = ndimage.binary_fill_holes(outline).astype(np.uint8)

    if mask.shape != (rows, cols):
        raise DimensionMismatchError(
            f"There was a problem parsing the chain code: mask shape {mask.shape} "
            f"!= ({rows}, {cols})"
        )
    return mask
