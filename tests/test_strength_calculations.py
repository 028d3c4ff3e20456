"""Tests for the compressive strength calculation engine."""
import math

import pytest

from utils.analysis.strength_calculations import (
    to_number, corrected_failure_load, paver_correction_factor, paver_corrected_load,
    parse_thickness_mm, gross_area, circular_area, effective_area, paver_plan_area,
    compressive_strength, density, average, exceeds_repeatability, certificate_average,
    sample_count_text,
)
from utils.models import HoleDimension


class TestToNumber:
    def test_numeric_strings(self):
        assert to_number('12.5') == 12.5
        assert to_number(3) == 3.0

    def test_missing_values(self):
        assert to_number(None) is None
        assert to_number('') is None
        assert to_number('abc') is None
        assert to_number(float('nan')) is None


class TestCorrectedLoad:
    def test_linear_correction(self):
        assert corrected_failure_load(675, 1.02, 0.5) == pytest.approx(689.0)

    def test_identity_machine(self):
        assert corrected_failure_load(500, 1.0, 0.0) == 500.0

    def test_missing_load(self):
        assert corrected_failure_load(None, 1.02, 0.5) is None
        assert corrected_failure_load('', 1.02, 0.5) is None

    def test_missing_factors_default(self):
        assert corrected_failure_load(100, None, None) == 100.0


class TestPaverCorrection:
    @pytest.mark.parametrize('thickness,factor', [
        ('60 mm Plain', 1.00),
        ('60 mm Chamfered', 1.06),
        ('80 mm Plain', 1.12),
        ('80 mm Chamfered', 1.18),
        ('100 mm Plain', 1.18),
        ('100 mm Chamfered', 1.24),
    ])
    def test_factors(self, thickness, factor):
        assert paver_correction_factor(thickness) == factor

    def test_unknown_class(self):
        assert paver_correction_factor('90 mm Wavy') == 1.00
        assert paver_correction_factor(None) == 1.00

    def test_corrected_load(self):
        assert paver_corrected_load(500, '80 mm Plain') == pytest.approx(560.0)
        assert paver_corrected_load(None, '80 mm Plain') is None

    def test_parse_thickness(self):
        assert parse_thickness_mm('80 mm Chamfered') == 80.0
        assert parse_thickness_mm(None) == 0.0


class TestAreas:
    def test_gross_area(self):
        assert gross_area(150, 150) == 22500.0
        assert gross_area(None, 150) == 0.0

    def test_circular_area(self):
        assert circular_area(150) == pytest.approx(math.pi * 75 ** 2)
        assert circular_area(0) == 0.0

    def test_effective_area_subtracts_voids(self):
        holes = [HoleDimension(l=100, w=50, no=2), HoleDimension(), HoleDimension(l=20, w=10, no=1)]
        assert effective_area(390, 190, holes) == pytest.approx(74100 - 10000 - 200)

    def test_paver_plan_area_prefers_measured(self):
        assert paver_plan_area(21000, 40) == 21000

    def test_paver_plan_area_from_density(self):
        assert paver_plan_area(None, 40) == pytest.approx(25000)
        assert paver_plan_area(None, None) == 0.0


class TestStrength:
    def test_cube_strength(self):
        assert compressive_strength(675, 22500) == pytest.approx(30.0)

    def test_zero_area_is_undefined(self):
        assert compressive_strength(675, 0) is None
        assert compressive_strength(675, -1) is None

    def test_missing_load(self):
        assert compressive_strength(None, 22500) is None

    def test_density(self):
        assert density(8.1, 150, 150, 150) == pytest.approx(2400.0)
        assert density(None, 150, 150, 150) is None
        assert density(8.1, 0, 150, 150) is None


class TestRepeatability:
    def test_average_ignores_missing(self):
        assert average([30, None, 32]) == pytest.approx(31.0)
        assert average([]) is None

    def test_within_threshold(self):
        assert not exceeds_repeatability([30.0, 30.2, 30.7])

    def test_exceeds_threshold(self):
        assert exceeds_repeatability([20.0, 30.0, 40.0])

    def test_single_value_never_exceeds(self):
        assert not exceeds_repeatability([25.0])

    def test_custom_threshold(self):
        values = [30.0, 33.0]
        assert not exceeds_repeatability(values, 9)
        assert exceeds_repeatability(values, 4)

    def test_certificate_average_withheld(self):
        assert certificate_average([20.0, 30.0, 40.0]) is None
        assert certificate_average([30.0, 31.0]) == pytest.approx(30.5)


class TestSampleCountText:
    def test_words(self):
        assert sample_count_text(3) == 'Three (03)'
        assert sample_count_text(12) == 'Twelve (12)'

    def test_large_count(self):
        assert sample_count_text(25) == '25 (25)'
