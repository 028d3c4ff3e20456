"""Calculation engines for compressive strength and absorption testing."""
from .strength_calculations import (
    corrected_failure_load, paver_correction_factor, paver_corrected_load,
    compressive_strength, average, exceeds_repeatability, certificate_average,
    PAVER_CORRECTION_FACTORS,
)
from .age_calculations import calculate_age, check_testing_date, TestingDateCheck
from .absorption_calculations import water_absorption, average_absorption

__all__ = ['corrected_failure_load', 'paver_correction_factor', 'paver_corrected_load',
           'compressive_strength', 'average', 'exceeds_repeatability',
           'certificate_average', 'PAVER_CORRECTION_FACTORS',
           'calculate_age', 'check_testing_date', 'TestingDateCheck',
           'water_absorption', 'average_absorption']
