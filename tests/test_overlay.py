"""
Tests for overlay parsing.
"""

import numpy as np
import pytest

from ddsm.errors import FileError, FormatError
from ddsm.models import MaskGenerator
from ddsm.overlay import (
    find_abnormality_block,
    load_overlay,
    parse_overlay,
    parse_overlay_text,
    parse_total_abnormalities,
)


def make_overlay(*blocks: str, total=None) -> str:
    """Join abnormality blocks under a TOTAL_ABNORMALITIES header."""
    total = len(blocks) if total is None else total
    body = "".join(
        f"ABNORMALITY {i}\n{block}" for i, block in enumerate(blocks, 1)
    )
    return f"TOTAL_ABNORMALITIES {total}\n{body}"


SIMPLE_BLOCK = (
    "LESION_TYPE MASS SHAPE OVAL MARGINS CIRCUMSCRIBED\n"
    "ASSESSMENT 2\n"
    "SUBTLETY 4\n"
    "PATHOLOGY BENIGN_WITHOUT_CALLBACK\n"
    "TOTAL_OUTLINES 1\n"
    "BOUNDARY\n"
    "1 1 2 4 6 0 #\n"
)


class TestParseOverlay:
    """Tests for parse_overlay on well-formed input."""

    def test_two_abnormalities(self, overlay_text):
        abnormalities = parse_overlay_text(overlay_text)

        assert len(abnormalities) == 2
        first, second = abnormalities

        assert first.number == 1
        assert first.lesion_types == ("MASS SHAPE IRREGULAR MARGINS ILL_DEFINED",)
        assert first.assessment == 4
        assert first.subtlety == 3
        assert first.pathology == "MALIGNANT"
        assert first.total_outlines == 2
        assert isinstance(first.boundary, MaskGenerator)
        assert len(first.cores) == 1

        assert second.number == 2
        assert second.lesion_types == (
            "CALCIFICATION TYPE PUNCTATE DISTRIBUTION CLUSTERED",
            "MASS SHAPE ROUND MARGINS CIRCUMSCRIBED",
        )
        assert second.assessment == 3
        assert second.subtlety == 5
        assert second.pathology == "BENIGN"
        assert isinstance(second.boundary, MaskGenerator)
        assert second.cores == ()

    def test_masks_from_parsed_outlines(self, overlay_text):
        first, second = parse_overlay_text(overlay_text)

        boundary = first.boundary.generate(10, 10)
        expected = np.zeros((10, 10), dtype=np.uint8)
        expected[2:5, 2:5] = 1
        np.testing.assert_array_equal(boundary, expected)

        core = first.cores[0].generate(10, 10)
        assert core.sum() == 1
        assert core[3, 3] == 1

        assert second.boundary.generate(10, 10).sum() == 13

    def test_accepts_lines_with_newlines(self, overlay_text):
        lines = overlay_text.splitlines(keepends=True)
        assert len(parse_overlay(lines)) == 2

    def test_crlf_line_endings(self, overlay_text):
        text = overlay_text.replace("\n", "\r\n")
        assert len(parse_overlay_text(text)) == 2

    def test_zero_abnormalities(self):
        assert parse_overlay_text("TOTAL_ABNORMALITIES 0\n") == []

    def test_empty_lesion_types_preserved(self):
        block = SIMPLE_BLOCK.replace("LESION_TYPE MASS SHAPE OVAL MARGINS CIRCUMSCRIBED\n", "")
        (abnormality,) = parse_overlay_text(make_overlay(block))
        assert abnormality.lesion_types == ()

    def test_optional_fields_missing(self):
        block = "TOTAL_OUTLINES 1\nBOUNDARY\n1 1 #\n"
        (abnormality,) = parse_overlay_text(make_overlay(block))
        assert abnormality.assessment is None
        assert abnormality.subtlety is None
        assert abnormality.pathology is None

    def test_blank_lines_in_outlines_skipped(self):
        block = SIMPLE_BLOCK.replace("BOUNDARY\n", "BOUNDARY\n\n")
        (abnormality,) = parse_overlay_text(make_overlay(block) + "\n")
        assert abnormality.boundary.chain_code.directions == (2, 4, 6, 0)

    def test_multiple_cores(self):
        block = SIMPLE_BLOCK.replace("TOTAL_OUTLINES 1", "TOTAL_OUTLINES 3") + (
            "CORE\n2 2 #\nCORE\n3 3 #\n"
        )
        (abnormality,) = parse_overlay_text(make_overlay(block))
        assert [c.chain_code.start for c in abnormality.cores] == [(2, 2), (3, 3)]

    def test_eleven_abnormalities(self):
        """ABNORMALITY 1 never matches ABNORMALITY 10 or 11."""
        blocks = [
            SIMPLE_BLOCK.replace("ASSESSMENT 2", f"ASSESSMENT {i % 6}") for i in range(1, 12)
        ]
        abnormalities = parse_overlay_text(make_overlay(*blocks))

        assert len(abnormalities) == 11
        assert [a.assessment for a in abnormalities] == [i % 6 for i in range(1, 12)]

    def test_to_dict(self, overlay_text):
        first = parse_overlay_text(overlay_text)[0]
        data = first.to_dict()
        assert data["boundary"] == "2 2 2 2 4 4 6 6 0 0 #"
        assert data["cores"] == ["3 3 #"]
        assert data["lesion_types"] == ["MASS SHAPE IRREGULAR MARGINS ILL_DEFINED"]


class TestMalformedOverlay:
    """Tests for FormatError cases."""

    def test_no_header(self):
        with pytest.raises(FormatError, match="TOTAL_ABNORMALITIES"):
            parse_overlay_text("ABNORMALITY 1\n" + SIMPLE_BLOCK)

    def test_non_numeric_header(self):
        with pytest.raises(FormatError):
            parse_overlay_text("TOTAL_ABNORMALITIES two\n")

    @pytest.mark.parametrize("value", ["\u00b2", "\u0663", "-1"])
    def test_header_not_plain_digits(self, value):
        with pytest.raises(FormatError, match="not a number"):
            parse_overlay_text(f"TOTAL_ABNORMALITIES {value}\n")

    def test_fewer_blocks_than_declared(self):
        with pytest.raises(FormatError, match="ABNORMALITY 2"):
            parse_overlay_text(make_overlay(SIMPLE_BLOCK, total=2))

    def test_missing_total_outlines(self):
        block = SIMPLE_BLOCK.replace("TOTAL_OUTLINES 1\n", "")
        with pytest.raises(FormatError, match="TOTAL_OUTLINES"):
            parse_overlay_text(make_overlay(block))

    def test_missing_sentinel(self):
        """The chain code is rejected at parse time, before any mask exists."""
        block = SIMPLE_BLOCK.replace("1 1 2 4 6 0 #", "1 1 2 4 6 0")
        with pytest.raises(FormatError, match="#"):
            parse_overlay_text(make_overlay(block))

    def test_chain_code_without_keyword(self):
        block = SIMPLE_BLOCK.replace("BOUNDARY\n", "")
        with pytest.raises(FormatError, match="BOUNDARY or CORE"):
            parse_overlay_text(make_overlay(block))

    def test_no_boundary(self):
        block = SIMPLE_BLOCK.replace("BOUNDARY\n1 1 2 4 6 0 #\n", "CORE\n1 1 #\n")
        with pytest.raises(FormatError, match="no boundary"):
            parse_overlay_text(make_overlay(block))

    def test_two_boundaries(self):
        block = SIMPLE_BLOCK + "BOUNDARY\n2 2 #\n"
        with pytest.raises(FormatError, match="more than one boundary"):
            parse_overlay_text(make_overlay(block))

    def test_non_integer_assessment(self):
        block = SIMPLE_BLOCK.replace("ASSESSMENT 2", "ASSESSMENT high")
        with pytest.raises(FormatError, match="ASSESSMENT"):
            parse_overlay_text(make_overlay(block))


class TestHelpers:
    """Tests for header and block lookup."""

    def test_header_found_on_any_line(self):
        assert parse_total_abnormalities(["", "TOTAL_ABNORMALITIES 3"]) == 3

    def test_block_ignores_longer_numbers(self):
        lines = ["ABNORMALITY 10", "a", "ABNORMALITY 1", "b", "ABNORMALITY 2", "c"]
        assert find_abnormality_block(lines, 1) == ["ABNORMALITY 1", "b"]

    def test_last_block_runs_to_end(self):
        lines = ["ABNORMALITY 1", "a", "ABNORMALITY 2", "b", "c"]
        assert find_abnormality_block(lines, 2) == ["ABNORMALITY 2", "b", "c"]


class TestLoadOverlay:
    """Tests for reading overlay files."""

    def test_load(self, overlay_file):
        abnormalities = load_overlay(overlay_file)
        assert len(abnormalities) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileError):
            load_overlay(tmp_path / "missing.OVERLAY")
