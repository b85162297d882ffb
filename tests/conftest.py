"""
Shared fixtures.
"""

import pytest

OVERLAY_TEXT = """\
TOTAL_ABNORMALITIES 2
ABNORMALITY 1
LESION_TYPE MASS SHAPE IRREGULAR MARGINS ILL_DEFINED
ASSESSMENT 4
SUBTLETY 3
PATHOLOGY MALIGNANT
TOTAL_OUTLINES 2
BOUNDARY
2 2 2 2 4 4 6 6 0 0 #
CORE
3 3 #
ABNORMALITY 2
LESION_TYPE CALCIFICATION TYPE PUNCTATE DISTRIBUTION CLUSTERED
LESION_TYPE MASS SHAPE ROUND MARGINS CIRCUMSCRIBED
ASSESSMENT 3
SUBTLETY 5
PATHOLOGY BENIGN
TOTAL_OUTLINES 1
BOUNDARY
5 2 3 3 5 5 7 7 1 1 #
"""


@pytest.fixture
def overlay_text():
    """Overlay with a square mass (plus core) and a diamond-shaped finding."""
    return OVERLAY_TEXT


@pytest.fixture
def overlay_file(tmp_path, overlay_text):
    """The same overlay written to disk."""
    path = tmp_path / "A_0001_1.LEFT_CC.OVERLAY"
    path.write_text(overlay_text)
    return path


def raw_bytes(values) -> bytes:
    """Encode samples as big-endian 16-bit."""
    return b"".join(int(v).to_bytes(2, "big") for v in values)
