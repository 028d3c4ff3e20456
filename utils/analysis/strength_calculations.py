"""
Compressive strength calculation engine.

Derives corrected failure loads, strengths and densities for concrete cubes,
cylinders, paving blocks and bricks/blocks.

Theory:
- Machine correction: Fc = m × F + c  (m, c from the machine calibration)
- Paver correction: Fc = F × k  (k from the thickness/shape class, BS 6717)
- Compressive strength: fc = Fc × 1000 / A  (kN, mm² -> N/mm² = MPa)
- Density: ρ = W / (l × w × h)  (kg, mm -> kg/m³)
- Repeatability: results whose deviation from the mean exceeds r = 9%
  are not averaged on the certificate.
"""

import math
import re
from typing import Iterable, List, Optional


DEFAULT_REPEATABILITY_THRESHOLD = 9.0  # percent

PAVER_CORRECTION_FACTORS = {
    '60 mm Plain': 1.00,
    '60 mm Chamfered': 1.06,
    '65 mm Plain': 1.00,
    '65 mm Chamfered': 1.06,
    '80 mm Plain': 1.12,
    '80 mm Chamfered': 1.18,
    '100 mm Plain': 1.18,
    '100 mm Chamfered': 1.24,
}

PAVER_THICKNESS_CLASSES = list(PAVER_CORRECTION_FACTORS.keys())


def to_number(value) -> Optional[float]:
    """Coerce a stored value to float, None when absent or not numeric."""
    if value is None or value == '':
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def corrected_failure_load(load, factor_m=1.0, factor_c=0.0) -> Optional[float]:
    """
    Apply a linear machine correction to a raw failure load.

    Parameters
    ----------
    load : float
        Raw failure load (kN)
    factor_m : float
        Machine slope
    factor_c : float
        Machine offset (kN)

    Returns
    -------
    float or None
        Corrected failure load (kN), None when the load is missing
    """
    load = to_number(load)
    if load is None:
        return None
    m = to_number(factor_m)
    c = to_number(factor_c)
    return (1.0 if m is None else m) * load + (0.0 if c is None else c)


def paver_correction_factor(thickness: Optional[str]) -> float:
    """Correction factor for a paver thickness class, 1.00 when unknown."""
    return PAVER_CORRECTION_FACTORS.get((thickness or '').strip(), 1.00)


def paver_corrected_load(load, thickness: Optional[str]) -> Optional[float]:
    """Raw paver load multiplied by the thickness-class correction factor."""
    load = to_number(load)
    if load is None:
        return None
    return load * paver_correction_factor(thickness)


def parse_thickness_mm(thickness: Optional[str]) -> float:
    """Extract the nominal thickness from a class like '80 mm Plain'."""
    match = re.search(r'\d+', thickness or '')
    return float(match.group()) if match else 0.0


def gross_area(length, width) -> float:
    """Rectangular bearing area (mm²), 0 when a side is missing."""
    l = to_number(length)
    w = to_number(width)
    if l is None or w is None:
        return 0.0
    return l * w


def circular_area(diameter) -> float:
    """Circular bearing area (mm²) of a cylinder end face."""
    d = to_number(diameter)
    if d is None or d <= 0:
        return 0.0
    return math.pi * (d / 2) ** 2


def effective_area(length, width, holes: Iterable = ()) -> float:
    """
    Net bearing area of a hollow block.

    Parameters
    ----------
    length, width : float
        Overall block dimensions (mm)
    holes : iterable of HoleDimension
        Hole A, hole B and notch voids

    Returns
    -------
    float
        Gross area minus the void areas (mm²)
    """
    area = gross_area(length, width)
    for hole in holes:
        if hole is not None:
            area -= hole.area
    return area


def paver_plan_area(calculated_area=None, pavers_per_square_metre=None) -> float:
    """Paver plan area (mm²) from a measured value or the laying density."""
    area = to_number(calculated_area)
    if area is not None and area > 0:
        return area
    per_sqm = to_number(pavers_per_square_metre)
    if per_sqm is not None and per_sqm > 0:
        return 1_000_000 / per_sqm
    return 0.0


def compressive_strength(corrected_load, area) -> Optional[float]:
    """
    Calculate compressive strength.

    fc = Fc × 1000 / A

    Parameters
    ----------
    corrected_load : float
        Corrected failure load (kN)
    area : float
        Bearing area (mm²)

    Returns
    -------
    float or None
        Compressive strength (MPa), None when the area is not positive or the
        load is missing
    """
    load = to_number(corrected_load)
    area = to_number(area)
    if load is None or area is None or area <= 0:
        return None
    return load * 1000 / area


def density(weight, length, width, height) -> Optional[float]:
    """Bulk density (kg/m³) from mass (kg) and dimensions (mm)."""
    w = to_number(weight)
    dims = [to_number(length), to_number(width), to_number(height)]
    if w is None or any(d is None or d <= 0 for d in dims):
        return None
    volume = (dims[0] / 1000) * (dims[1] / 1000) * (dims[2] / 1000)
    return w / volume


def cylinder_density(weight, diameter, height) -> Optional[float]:
    """Bulk density (kg/m³) of a cylinder."""
    w = to_number(weight)
    h = to_number(height)
    area = circular_area(diameter)
    if w is None or h is None or h <= 0 or area <= 0:
        return None
    return w / (area / 1e6 * h / 1000)


def paver_density(weight, plan_area, thickness_mm) -> Optional[float]:
    """Bulk density (kg/m³) of a paver from its plan area and thickness."""
    w = to_number(weight)
    area = to_number(plan_area)
    t = to_number(thickness_mm)
    if w is None or area is None or t is None or area <= 0 or t <= 0:
        return None
    return w / (area / 1e6 * t / 1000)


def _present(values: Iterable) -> List[float]:
    return [v for v in (to_number(x) for x in values) if v is not None]


def average(values: Iterable) -> Optional[float]:
    """Arithmetic mean of the present values, None for an empty set."""
    present = _present(values)
    if not present:
        return None
    return sum(present) / len(present)


def exceeds_repeatability(values: Iterable,
                          threshold: float = DEFAULT_REPEATABILITY_THRESHOLD) -> bool:
    """
    Check the repeatability condition.

    Parameters
    ----------
    values : iterable of float
        Per-sample compressive strengths
    threshold : float
        Allowed deviation from the mean in percent

    Returns
    -------
    bool
        True when any sample deviates from the mean by more than the
        threshold. Always False for fewer than two samples.
    """
    present = _present(values)
    if len(present) < 2:
        return False
    mean = sum(present) / len(present)
    if mean == 0:
        return False
    return any(abs(v - mean) / mean * 100 > threshold for v in present)


def certificate_average(values: Iterable,
                        threshold: float = DEFAULT_REPEATABILITY_THRESHOLD) -> Optional[float]:
    """Mean strength for issue, withheld (None) when repeatability is exceeded."""
    values = list(values)
    if exceeds_repeatability(values, threshold):
        return None
    return average(values)


_NUMBER_WORDS = [
    'Zero', 'One', 'Two', 'Three', 'Four', 'Five', 'Six', 'Seven', 'Eight',
    'Nine', 'Ten', 'Eleven', 'Twelve', 'Thirteen', 'Fourteen', 'Fifteen',
    'Sixteen', 'Seventeen', 'Eighteen', 'Nineteen', 'Twenty',
]


def sample_count_text(count: int) -> str:
    """Sample count as written on certificates, e.g. 'Three (03)'."""
    word = _NUMBER_WORDS[count] if 0 <= count < len(_NUMBER_WORDS) else str(count)
    return f'{word} ({count:02d})'
