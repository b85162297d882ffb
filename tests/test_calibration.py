"""
Tests for digitizer calibration and grey level normalisation.
"""

import math

import numpy as np
import pytest

from ddsm.calibration import (
    Digitizer,
    check_calibration,
    lookup_table,
    normalize_sample,
    od_to_norm_grey_level,
    optical_density,
)
from ddsm.errors import CalibrationRangeError, UsageError


class TestDigitizer:
    """Tests for Digitizer parsing and metadata."""

    @pytest.mark.parametrize("value,expected", [
        ("A", Digitizer.A),
        ("b", Digitizer.B),
        ("dba", Digitizer.A),
        ("howtek-mgh", Digitizer.B),
        ("HOWTEK-ISMD", Digitizer.C),
        ("lumisys", Digitizer.D),
    ])
    def test_parse(self, value, expected):
        assert Digitizer.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(UsageError):
            Digitizer.parse("howtek")

    def test_bits_per_pixel(self):
        """Only the DBA scanner digitized at 16 bits."""
        assert Digitizer.A.bits_per_pixel == 16
        assert {d.bits_per_pixel for d in (Digitizer.B, Digitizer.C, Digitizer.D)} == {12}


class TestOpticalDensity:
    """Tests for the per-digitizer calibration formulas."""

    def test_dba_zero_is_zero_density(self):
        assert optical_density(0, Digitizer.A) == 0.0

    def test_dba_formula(self):
        expected = (math.log10(1000) - 4.80662) / -1.07553
        assert optical_density(1000, Digitizer.A) == pytest.approx(expected)

    def test_dba_clamps_low_and_high(self):
        assert optical_density(1, Digitizer.A) == optical_density(4, Digitizer.A)
        assert optical_density(65535, Digitizer.A) == optical_density(64064, Digitizer.A)

    def test_howtek_mgh_clamps_high(self):
        assert optical_density(5000, Digitizer.B) == optical_density(4006, Digitizer.B)
        assert optical_density(1000, Digitizer.B) == pytest.approx(2.84332)

    def test_howtek_ismd_clamps_high(self):
        assert optical_density(65535, Digitizer.C) == optical_density(4003, Digitizer.C)
        assert optical_density(0, Digitizer.C) == pytest.approx(3.96604096240593)

    def test_lumisys_clamps_both_ends(self):
        assert optical_density(0, Digitizer.D) == optical_density(61, Digitizer.D)
        assert optical_density(9000, Digitizer.D) == optical_density(4097, Digitizer.D)

    def test_densities_stay_below_max(self):
        """Clamping keeps every digitizer at or below an OD of 4.0."""
        for digitizer in Digitizer:
            for raw in (0, 1, 4, 61, 1000, 4003, 4006, 4097, 64064, 65535):
                assert optical_density(raw, digitizer) <= 4.0


class TestNormalisation:
    """Tests for od_to_norm_grey_level."""

    def test_zero_density_is_white(self):
        assert od_to_norm_grey_level(0.0) == 65535

    def test_max_density_is_black(self):
        assert od_to_norm_grey_level(4.0) == 0

    def test_companding_is_exact_integer(self):
        # od 2.0 -> 32768 (round of 32767.5) -> inverted 32767 -> 32767**2 // 65535
        assert od_to_norm_grey_level(2.0) == (32767 * 32767) // 65535

    def test_out_of_range_density(self):
        with pytest.raises(CalibrationRangeError):
            od_to_norm_grey_level(4.1)

    def test_negative_density(self):
        with pytest.raises(CalibrationRangeError):
            od_to_norm_grey_level(-0.5)

    def test_tiny_negative_density_rounds_to_zero(self):
        """Lumisys at its upper clamp gives a density just below zero."""
        assert optical_density(4097, Digitizer.D) < 0
        assert normalize_sample(4097, Digitizer.D) == 65535

    @pytest.mark.parametrize("raw,digitizer,expected", [
        (0, Digitizer.A, 65535),
        (4, Digitizer.A, 33),
        (1000, Digitizer.B, 5480),
        (0, Digitizer.B, 182),
        (4006, Digitizer.B, 65515),
        (2000, Digitizer.C, 16631),
        (100, Digitizer.D, 6),
        (61, Digitizer.D, 0),
    ])
    def test_known_values(self, raw, digitizer, expected):
        assert normalize_sample(raw, digitizer) == expected


class TestConformance:
    """Exhaustive range checks over the full 16-bit domain."""

    @pytest.mark.parametrize("digitizer", list(Digitizer))
    def test_every_raw_value_in_range(self, digitizer):
        table = lookup_table(digitizer)
        assert table.shape == (65536,)
        assert table.min() >= 0
        assert table.max() <= 65535

    def test_check_calibration_all(self):
        results = check_calibration()
        assert [r.digitizer for r in results] == list(Digitizer)
        assert all(r.ok for r in results)
        assert all("OK" in r.message for r in results)

    def test_check_single_digitizer(self):
        results = check_calibration("lumisys")
        assert len(results) == 1
        assert results[0].digitizer is Digitizer.D

    def test_lookup_table_matches_scalar(self):
        table = lookup_table(Digitizer.C)
        for raw in (0, 1, 2000, 4003, 4004, 65535):
            assert table[raw] == normalize_sample(raw, Digitizer.C)

    def test_lookup_table_is_read_only(self):
        table = lookup_table(Digitizer.A)
        with pytest.raises(ValueError):
            table[0] = 1
        assert isinstance(table, np.ndarray)
