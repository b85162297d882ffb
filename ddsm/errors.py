"""
Error taxonomy for DDSM reconstruction.

Every failure aborts the operation in progress. Each kind carries the
status used by the command line (exit status) and the HTTP service.
"""


class DDSMError(Exception):
    """Base class for all reconstruction errors."""
    exit_status = 1
    http_status = 400

    @property
    def kind(self) -> str:
        return type(self).__name__


class UsageError(DDSMError):
    """Malformed invocation (bad arguments, unknown digitizer)."""
    exit_status = 2


class RangeError(DDSMError):
    """Rows or cols not positive."""
    exit_status = 3


class FileError(DDSMError):
    """A file could not be opened, read or written."""
    exit_status = 4
    http_status = 404


class CalibrationRangeError(DDSMError):
    """Computed grey level fell outside [0, 65535]."""
    exit_status = 5
    http_status = 422


class SizeMismatchError(DDSMError):
    """Number of samples in a raw stream differs from rows x cols."""
    exit_status = 6
    http_status = 422


class FormatError(DDSMError):
    """Malformed overlay text or chain code."""
    exit_status = 7
    http_status = 422


class DimensionMismatchError(DDSMError):
    """A generated mask does not have the requested shape."""
    exit_status = 8
    http_status = 500


class OutOfBoundsError(DDSMError):
    """A chain code leaves the declared raster."""
    exit_status = 9
    http_status = 422


def check_dimensions(rows: int, cols: int) -> None:
    """Raise RangeError unless both dimensions are positive."""
    if rows < 1:
        raise RangeError(f"The number of rows must be positive, got {rows}")
    if cols < 1:
        raise RangeError(f"The number of cols must be positive, got {cols}")
