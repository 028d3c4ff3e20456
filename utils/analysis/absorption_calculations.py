"""
Water absorption calculation (IS 2185 Part 1).

Absorption = (W_soaked - W_dry) / W_dry × 100
"""

from typing import Iterable, Optional, Tuple

from .strength_calculations import to_number, average


def water_absorption(dry_weight, soaked_weight) -> Tuple[Optional[float], Optional[float]]:
    """
    Mass gain and water absorption of a soaked specimen.

    Parameters
    ----------
    dry_weight : float
        Oven-dried weight (kg)
    soaked_weight : float
        Weight after soaking (kg)

    Returns
    -------
    tuple of (float or None, float or None)
        Mass difference (kg) and absorption (%). Absorption is 0.0 when the
        dry weight is not positive; both are None when a weight is missing.
    """
    dry = to_number(dry_weight)
    soaked = to_number(soaked_weight)
    if dry is None or soaked is None:
        return None, None
    difference = round(soaked - dry, 6)
    if dry <= 0:
        return difference, 0.0
    return difference, round(difference / dry * 100, 6)


def average_absorption(values: Iterable) -> Optional[float]:
    """Mean absorption percentage over the samples."""
    return average(values)
