"""
Mask utilities - RLE encoding/decoding, summaries and PNG output.
"""

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from ddsm.errors import FileError


def mask_to_rle(mask: np.ndarray) -> dict:
    """
    Convert a binary mask to uncompressed RLE.

    Runs are taken in column-major order and start with a run of zeros,
    matching the uncompressed COCO layout.

    Args:
        mask: Binary mask of shape (H, W)

    Returns:
        RLE dict with 'counts' (list of run lengths) and 'size' [H, W]
    """
    if mask.ndim != 2:
        raise ValueError(f"Mask must be 2D, got shape {mask.shape}")

    pixels = (mask.flatten(order='F') > 0).astype(np.int8)

    # Indices where the value changes
    changes = np.flatnonzero(np.diff(pixels)) + 1
    bounds = np.concatenate(([0], changes, [len(pixels)]))
    runs = np.diff(bounds).tolist()

    # RLE starts with the count of zeros
    if pixels[0] != 0:
        runs.insert(0, 0)

    return {
        'counts': runs,
        'size': list(mask.shape)
    }


def rle_to_mask(rle: dict, height: Optional[int] = None, width: Optional[int] = None) -> np.ndarray:
    """
    Convert uncompressed RLE back to a binary mask.

    Args:
        rle: RLE dict with 'counts' and 'size'
        height: Optional height (uses rle['size'] if not provided)
        width: Optional width (uses rle['size'] if not provided)

    Returns:
        Binary mask of shape (H, W) with dtype uint8
    """
    if height is None or width is None:
        height, width = rle['size']

    counts = rle['counts']
    values = np.arange(len(counts)) % 2
    pixels = np.repeat(values, counts).astype(np.uint8)

    if len(pixels) != height * width:
        raise ValueError(
            f"RLE covers {len(pixels)} pixels, expected {height * width}"
        )
    return pixels.reshape((height, width), order='F')


def mask_to_bbox(mask: np.ndarray) -> list[float]:
    """
    Get bounding box from binary mask.

    Args:
        mask: Binary mask of shape (H, W)

    Returns:
        Bounding box [x1, y1, x2, y2] in pixel coordinates
    """
    rows = np.any(mask, axis=1)
    cols = np.any(mask, axis=0)

    if not rows.any():
        return [0, 0, 0, 0]

    y1, y2 = np.where(rows)[0][[0, -1]]
    x1, x2 = np.where(cols)[0][[0, -1]]

    return [float(x1), float(y1), float(x2 + 1), float(y2 + 1)]


def mask_area(mask: np.ndarray) -> int:
    """Get the area (number of pixels) of a mask."""
    return int(np.sum(mask > 0))


def _to_image(mask: np.ndarray) -> np.ndarray:
    # Binary masks are stored as 0/255 so they are visible in viewers
    return np.where(mask > 0, 255, 0).astype(np.uint8)


def encode_mask_png(mask: np.ndarray) -> bytes:
    """Encode a binary mask as an 8-bit PNG."""
    ok, buffer = cv2.imencode(".png", _to_image(mask))
    if not ok:
        raise ValueError("Could not encode mask as PNG")
    return buffer.tobytes()


def save_mask_png(mask: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Write a binary mask as an 8-bit PNG (0 outside, 255 inside).

    Raises:
        FileError: If the file cannot be written
    """
    path = Path(path)
    if not cv2.imwrite(str(path), _to_image(mask)):
        raise FileError(f"Could not write mask image {path}")
    return path
