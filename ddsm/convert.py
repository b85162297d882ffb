"""
Raw DDSM file to plain PGM conversion.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ddsm import config
from ddsm.calibration import Digitizer
from ddsm.errors import FileError, check_dimensions
from ddsm.pnm import PixelLineWriter, open_pnm_for_writing, pnm_comment, write_pnm_header
from ddsm.raw import RawStreamDecoder, iter_decoded_chunks

logger = logging.getLogger(__name__)


def default_output_path(raw_path: Union[str, Path]) -> Path:
    """Output filename: the raw filename plus the configured suffix."""
    return Path(f"{raw_path}{config.OUTPUT_SUFFIX}")


def convert_raw_to_pnm(
    raw_path: Union[str, Path],
    rows: int,
    cols: int,
    digitizer: Digitizer,
    output_path: Optional[Union[str, Path]] = None,
    chunk_samples: Optional[int] = None,
) -> Path:
    """
    Convert a raw DDSM file into a normalised plain PGM file.

    The raw file is decoded and the PGM written chunk by chunk. If an error
    is raised the output file may exist but be partially written; it must
    not be used.

    Args:
        raw_path: Raw ("LJPEG.1") file, big-endian 16-bit samples
        rows: Image height from the ICS file
        cols: Image width from the ICS file
        digitizer: Digitizer letter or legacy name
        output_path: Where to write (default: raw_path + OUTPUT_SUFFIX,
            overwritten if it exists)
        chunk_samples: Samples decoded per read

    Returns:
        Path of the written file

    Raises:
        UsageError: Unknown digitizer
        RangeError: Rows or cols not positive
        FileError: Input or output cannot be opened, read or written
        CalibrationRangeError: A sample normalised out of range
        SizeMismatchError: The file does not hold rows x cols samples
    """
    digitizer = Digitizer.parse(digitizer)
    check_dimensions(rows, cols)
    raw_path = Path(raw_path)
    output_path = Path(output_path) if output_path else default_output_path(raw_path)

    try:
        source = open(raw_path, "rb")
    except OSError as e:
        raise FileError(f"Could not open raw file {raw_path}: {e}") from e

    with source, open_pnm_for_writing(output_path) as out:
        decoder = RawStreamDecoder(digitizer)
        try:
            write_pnm_header(out, rows, cols, pnm_comment(digitizer))
            writer = PixelLineWriter(out)
            for values in iter_decoded_chunks(source, decoder, chunk_samples):
                writer.write(values)
        except OSError as e:
            raise FileError(f"Could not write PNM file {output_path}: {e}") from e
        decoder.finish(rows, cols)

    logger.info(
        f"Converted {raw_path} ({rows}x{cols}, {digitizer.legacy_name}) -> {output_path}"
    )
    return output_path
