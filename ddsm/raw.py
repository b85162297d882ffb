"""
Raw DDSM stream decoding.

A raw ("LJPEG.1") file is a sequence of big-endian unsigned 16-bit
samples, row-major, with no header. The dimensions come from the case's
ICS file and must be supplied by the caller.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

import numpy as np

from ddsm import config
from ddsm.calibration import Digitizer, lookup_table
from ddsm.errors import (
    CalibrationRangeError,
    FileError,
    SizeMismatchError,
    check_dimensions,
)

logger = logging.getLogger(__name__)

# Big-endian unsigned 16-bit
RAW_DTYPE = np.dtype(">u2")


class RawStreamDecoder:
    """
    Calibrate a raw byte stream chunk by chunk.

    The decoder keeps count of the samples produced and carries an odd
    byte over to the next chunk, so a stream can be fed in pieces of any
    size.
    """

    def __init__(self, digitizer: Digitizer):
        self.digitizer = Digitizer.parse(digitizer)
        self._table = lookup_table(self.digitizer)
        self._pending = b""
        self.samples = 0
        self.min_value = None
        self.max_value = None

    @property
    def has_trailing_byte(self) -> bool:
        return len(self._pending) > 0

    def feed(self, data: bytes) -> np.ndarray:
        """
        Decode the next piece of the stream.

        Args:
            data: Raw bytes, continuing where the previous call stopped

        Returns:
            Normalised grey levels (uint16) for every complete sample

        Raises:
            CalibrationRangeError: If any sample normalises out of range
        """
        if self._pending:
            data = self._pending + data
        usable = len(data) - (len(data) % 2)
        self._pending = data[usable:]

        raw = np.frombuffer(data[:usable], dtype=RAW_DTYPE)
        values = self._table[raw]

        bad = np.flatnonzero(values < 0)
        if len(bad):
            index = self.samples + int(bad[0])
            raise CalibrationRangeError(
                f"A pixel value error was detected at sample {index} "
                f"(raw value {int(raw[bad[0]])}, digitizer {self.digitizer.legacy_name})"
            )

        self.samples += len(values)
        if len(values):
            lo, hi = int(values.min()), int(values.max())
            self.min_value = lo if self.min_value is None else min(self.min_value, lo)
            self.max_value = hi if self.max_value is None else max(self.max_value, hi)
        return values.astype(np.uint16)

    def finish(self, rows: int, cols: int) -> None:
        """
        Check the stream held exactly rows x cols samples.

        Raises:
            SizeMismatchError: On a truncated, oversized or odd-length stream
        """
        expected = rows * cols
        if self.has_trailing_byte or self.samples != expected:
            extra = " plus one trailing byte" if self.has_trailing_byte else ""
            raise SizeMismatchError(
                f"The specified number of pixels seems to be incorrect for the input. "
                f"We read {self.samples} pixels{extra}, which is not equal to "
                f"{rows} x {cols}."
            )
        logger.debug(
            f"Decoded {self.samples} samples ({self.digitizer.legacy_name}), "
            f"grey levels {self.min_value}..{self.max_value}"
        )


def iter_decoded_chunks(
    stream: BinaryIO,
    decoder: RawStreamDecoder,
    chunk_samples: Optional[int] = None,
) -> Iterator[np.ndarray]:
    """
    Read a binary stream to the end, yielding calibrated chunks.

    Args:
        stream: Binary file-like object positioned at the first sample
        decoder: Decoder holding the calibration and the running count
        chunk_samples: Samples per read (config.CHUNK_SAMPLES if None)

    Yields:
        uint16 arrays of normalised grey levels

    Raises:
        FileError: On any read fault
        CalibrationRangeError: If a sample normalises out of range
    """
    chunk_bytes = 2 * (chunk_samples or config.CHUNK_SAMPLES)
    while True:
        try:
            data = stream.read(chunk_bytes)
        except OSError as e:
            raise FileError(f"A file read error occurred: {e}") from e
        if not data:
            break
        values = decoder.feed(data)
        if len(values):
            yield values


def decode_raw_stream(
    stream: BinaryIO,
    digitizer: Digitizer,
    rows: int,
    cols: int,
    chunk_samples: Optional[int] = None,
) -> np.ndarray:
    """
    Decode a whole raw stream into a normalised raster.

    Args:
        stream: Binary file-like object
        digitizer: Digitizer the film was scanned with
        rows: Image height from the ICS file
        cols: Image width from the ICS file

    Returns:
        uint16 raster of shape (rows, cols)

    Raises:
        RangeError: If rows or cols is not positive
        FileError: On any read fault
        CalibrationRangeError: If a sample normalises out of range
        SizeMismatchError: If the stream does not hold rows x cols samples
    """
    check_dimensions(rows, cols)
    decoder = RawStreamDecoder(digitizer)
    chunks = list(iter_decoded_chunks(stream, decoder, chunk_samples))
    decoder.finish(rows, cols)
    return np.concatenate(chunks).reshape(rows, cols)


def decode_raw_file(
    path: Union[str, Path],
    digitizer: Digitizer,
    rows: int,
    cols: int,
    chunk_samples: Optional[int] = None,
) -> np.ndarray:
    """Decode a raw file from disk. See decode_raw_stream."""
    check_dimensions(rows, cols)
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise FileError(f"Could not open raw file {path}: {e}") from e
    with handle:
        return decode_raw_stream(handle, digitizer, rows, cols, chunk_samples)
