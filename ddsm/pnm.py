"""
Plain ("P2") PGM serialization.

The layout is kept byte-for-byte identical to the files produced by the
original DDSM conversion tool:

    P2
    # <comment>
    <cols>
    <rows>
    65535
    <values>

Every value is followed by a single space and a newline is inserted after
every tenth value (at most 5 characters per value, so lines break around
column 50, inside the 70 character limit of the PGM format).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO, Union

import numpy as np

from ddsm.calibration import MAX_GREY_LEVEL, Digitizer
from ddsm.errors import FileError, FormatError, check_dimensions

MAGIC = "P2"
MAX_CHARS_PER_VALUE = 5
BREAK_AROUND_COLUMN = 50
VALUES_PER_LINE = BREAK_AROUND_COLUMN // MAX_CHARS_PER_VALUE


def pnm_comment(digitizer: Digitizer) -> str:
    """Provenance comment recording the scanner's original bit depth."""
    bits = Digitizer.parse(digitizer).bits_per_pixel
    return (
        f"Generated by ddsm-groundtruth. "
        f"Original data was digitized at {bits} bits/pixel."
    )


def write_pnm_header(fh: TextIO, rows: int, cols: int, comment: str) -> None:
    """Write the magic number, comment, dimensions and maxval."""
    check_dimensions(rows, cols)
    fh.write(f"{MAGIC}\n# {comment}\n{cols}\n{rows}\n{MAX_GREY_LEVEL}\n")


class PixelLineWriter:
    """
    Writes pixel values in the wrapped layout, across any number of calls.

    The position within the current line survives between calls so a
    raster can be written chunk by chunk.
    """

    def __init__(self, fh: TextIO, values_per_line: int = VALUES_PER_LINE):
        self.fh = fh
        self.values_per_line = values_per_line
        self.count = 0
        self._column = 0

    def write(self, values) -> None:
        values = np.asarray(values).ravel().tolist()
        parts = []
        pos = 0
        while pos < len(values):
            take = min(self.values_per_line - self._column, len(values) - pos)
            parts.append("".join(f"{v} " for v in values[pos:pos + take]))
            pos += take
            self._column += take
            if self._column == self.values_per_line:
                parts.append("\n")
                self._column = 0
        self.fh.write("".join(parts))
        self.count += len(values)


def write_pnm(fh: TextIO, raster: np.ndarray, comment: str) -> None:
    """
    Serialize a whole raster.

    Args:
        fh: Text stream (open with newline="\\n" for byte-exact output)
        raster: 2D array of grey levels in [0, 65535]
        comment: Comment line text, without the leading "# "
    """
    if raster.ndim != 2:
        raise ValueError(f"Raster must be 2D, got shape {raster.shape}")
    rows, cols = raster.shape
    write_pnm_header(fh, rows, cols, comment)
    writer = PixelLineWriter(fh)
    for row in raster:
        writer.write(row)


def open_pnm_for_writing(path: Union[str, Path]) -> TextIO:
    """Open an output file for byte-exact PNM text."""
    try:
        return open(path, "w", encoding="ascii", newline="\n")
    except OSError as e:
        raise FileError(f"Could not create the PNM file {path}: {e}") from e


@dataclass
class PnmImage:
    """A plain PGM file read back from disk."""
    pixels: np.ndarray
    maxval: int
    comments: list[str] = field(default_factory=list)

    @property
    def rows(self) -> int:
        return self.pixels.shape[0]

    @property
    def cols(self) -> int:
        return self.pixels.shape[1]


def read_pnm(path: Union[str, Path]) -> PnmImage:
    """
    Read a plain P2 file.

    Args:
        path: File to read

    Returns:
        PnmImage with a uint16 pixel array of shape (rows, cols)

    Raises:
        FileError: If the file cannot be read
        FormatError: If the contents are not a well-formed P2 image
    """
    try:
        with open(path, "r", encoding="ascii") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise FileError(f"Could not read PNM file {path}: {e}") from e

    comments = []
    tokens = []
    for line in lines:
        content, sep, comment = line.partition("#")
        if sep:
            comments.append(comment.strip())
        tokens.extend(content.split())

    if len(tokens) < 4 or tokens[0] != MAGIC:
        raise FormatError(f"{path}: not a plain PGM (P2) file")

    try:
        cols, rows, maxval = (int(t) for t in tokens[1:4])
        values = np.array([int(t) for t in tokens[4:]], dtype=np.int64)
    except ValueError as e:
        raise FormatError(f"{path}: non-integer token: {e}") from e

    if rows < 1 or cols < 1:
        raise FormatError(f"{path}: invalid dimensions {cols}x{rows}")
    if not 0 < maxval <= MAX_GREY_LEVEL:
        raise FormatError(f"{path}: unsupported maxval {maxval}")
    if len(values) != rows * cols:
        raise FormatError(
            f"{path}: expected {rows * cols} pixel values, found {len(values)}"
        )
    if len(values) and (values.min() < 0 or values.max() > maxval):
        raise FormatError(f"{path}: pixel value outside [0, {maxval}]")

    return PnmImage(
        pixels=values.astype(np.uint16).reshape(rows, cols),
        maxval=maxval,
        comments=comments,
    )
