"""
Specimen data models for compressive strength and absorption testing.

Each specimen wraps one entry of a register's ``results`` list and exposes
the derived quantities printed on the certificate.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from utils.analysis.absorption_calculations import water_absorption
from utils.analysis.strength_calculations import (
    to_number, circular_area, compressive_strength,
    cylinder_density, density, effective_area, gross_area, paver_density,
    paver_plan_area,
)


DEFAULT_CUBE_SIZE = 150.0  # mm
DEFAULT_CYLINDER_DIAMETER = 150.0  # mm
DEFAULT_CYLINDER_HEIGHT = 300.0  # mm


class BlockType(Enum):
    """Masonry unit geometry."""
    SOLID = "solid"
    HOLLOW = "hollow"


@dataclass
class HoleDimension:
    """Void in a hollow block: length, width and number of identical voids."""
    l: float = 0.0
    w: float = 0.0
    no: float = 0.0

    @property
    def area(self) -> float:
        """Total void area in mm²."""
        return self.l * self.w * self.no

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "HoleDimension":
        data = data or {}
        return cls(
            l=to_number(data.get('l')) or 0.0,
            w=to_number(data.get('w')) or 0.0,
            no=to_number(data.get('no')) or 0.0,
        )

    def to_dict(self) -> Dict[str, float]:
        return {'l': self.l, 'w': self.w, 'no': self.no}


@dataclass
class CubeSample:
    """
    Concrete cube specimen.

    Dimensions default to the nominal 150 mm cube when not measured.
    """
    sample_id: str
    length: float = DEFAULT_CUBE_SIZE
    width: float = DEFAULT_CUBE_SIZE
    height: float = DEFAULT_CUBE_SIZE
    weight: Optional[float] = None  # kg
    load: Optional[float] = None  # kN
    corrected_failure_load: Optional[float] = None  # kN
    mode_of_failure: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CubeSample":
        def dim(key):
            value = to_number(data.get(key))
            return DEFAULT_CUBE_SIZE if value is None else value

        return cls(
            sample_id=str(data.get('sample_id', '')),
            length=dim('length'),
            width=dim('width'),
            height=dim('height'),
            weight=to_number(data.get('weight')),
            load=to_number(data.get('load')),
            corrected_failure_load=to_number(data.get('corrected_failure_load')),
            mode_of_failure=data.get('mode_of_failure') or '',
        )

    @property
    def area(self) -> float:
        """Loaded face area in mm²."""
        return gross_area(self.length, self.width)

    @property
    def strength(self) -> Optional[float]:
        """Compressive strength in MPa."""
        return compressive_strength(self.corrected_failure_load, self.area)

    @property
    def density(self) -> Optional[float]:
        """Density in kg/m³."""
        return density(self.weight, self.length, self.width, self.height)


@dataclass
class CylinderSample:
    """Concrete cylinder specimen."""
    sample_id: str
    diameter: float = DEFAULT_CYLINDER_DIAMETER
    height: float = DEFAULT_CYLINDER_HEIGHT
    weight: Optional[float] = None
    load: Optional[float] = None
    corrected_failure_load: Optional[float] = None
    mode_of_failure: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CylinderSample":
        diameter = to_number(data.get('diameter'))
        height = to_number(data.get('height'))
        return cls(
            sample_id=str(data.get('sample_id', '')),
            diameter=DEFAULT_CYLINDER_DIAMETER if diameter is None else diameter,
            height=DEFAULT_CYLINDER_HEIGHT if height is None else height,
            weight=to_number(data.get('weight')),
            load=to_number(data.get('load')),
            corrected_failure_load=to_number(data.get('corrected_failure_load')),
            mode_of_failure=data.get('mode_of_failure') or '',
        )

    @property
    def area(self) -> float:
        return circular_area(self.diameter)

    @property
    def strength(self) -> Optional[float]:
        return compressive_strength(self.corrected_failure_load, self.area)

    @property
    def density(self) -> Optional[float]:
        return cylinder_density(self.weight, self.diameter, self.height)


@dataclass
class PaverSample:
    """
    Precast concrete paving block.

    Parameters
    ----------
    sample_id : str
        Sample identifier
    calculated_area : float, optional
        Measured plan area (mm²); derived from pavers per m² when absent
    pavers_per_square_metre : float, optional
        Laying density of the paver type
    thickness_mm : float
        Nominal thickness from the thickness class
    """
    sample_id: str
    calculated_area: Optional[float] = None
    pavers_per_square_metre: Optional[float] = None
    thickness_mm: float = 0.0
    weight: Optional[float] = None
    load: Optional[float] = None
    corrected_failure_load: Optional[float] = None
    mode_of_failure: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], pavers_per_square_metre=None,
                  thickness_mm: float = 0.0) -> "PaverSample":
        return cls(
            sample_id=str(data.get('sample_id', '')),
            calculated_area=to_number(data.get('calculated_area')),
            pavers_per_square_metre=to_number(pavers_per_square_metre),
            thickness_mm=thickness_mm,
            weight=to_number(data.get('weight')),
            load=to_number(data.get('load')),
            corrected_failure_load=to_number(data.get('corrected_failure_load')),
            mode_of_failure=data.get('mode_of_failure') or '',
        )

    @property
    def area(self) -> float:
        """Plan area in mm²."""
        return paver_plan_area(self.calculated_area, self.pavers_per_square_metre)

    @property
    def strength(self) -> Optional[float]:
        return compressive_strength(self.corrected_failure_load, self.area)

    @property
    def density(self) -> Optional[float]:
        return paver_density(self.weight, self.area, self.thickness_mm)


@dataclass
class BlockSample:
    """Brick or concrete block, solid or hollow."""
    sample_id: str
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    load: Optional[float] = None
    corrected_failure_load: Optional[float] = None
    mode_of_failure: str = ""
    block_type: BlockType = BlockType.SOLID
    hole_a: HoleDimension = field(default_factory=HoleDimension)
    hole_b: HoleDimension = field(default_factory=HoleDimension)
    notch: HoleDimension = field(default_factory=HoleDimension)

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  block_type: BlockType = BlockType.SOLID) -> "BlockSample":
        return cls(
            sample_id=str(data.get('sample_id', '')),
            length=to_number(data.get('length')),
            width=to_number(data.get('width')),
            height=to_number(data.get('height')),
            weight=to_number(data.get('weight')),
            load=to_number(data.get('load')),
            corrected_failure_load=to_number(data.get('corrected_failure_load')),
            mode_of_failure=data.get('mode_of_failure') or '',
            block_type=block_type,
            hole_a=HoleDimension.from_dict(data.get('hole_a')),
            hole_b=HoleDimension.from_dict(data.get('hole_b')),
            notch=HoleDimension.from_dict(data.get('notch')),
        )

    @property
    def holes(self) -> List[HoleDimension]:
        return [self.hole_a, self.hole_b, self.notch]

    @property
    def gross_area(self) -> float:
        return gross_area(self.length, self.width)

    @property
    def area(self) -> float:
        """Bearing area in mm²: gross for solid units, net of voids for hollow."""
        if self.block_type == BlockType.HOLLOW:
            return effective_area(self.length, self.width, self.holes)
        return self.gross_area

    @property
    def effective_load(self) -> Optional[float]:
        """Corrected load, falling back to the raw load before correction."""
        if self.corrected_failure_load is not None:
            return self.corrected_failure_load
        return self.load

    @property
    def strength(self) -> Optional[float]:
        return compressive_strength(self.effective_load, self.area)

    @property
    def density(self) -> Optional[float]:
        return density(self.weight, self.length, self.width, self.height)


@dataclass
class AbsorptionSample:
    """Water absorption specimen."""
    sample_id: str
    dry_weight: Optional[float] = None  # kg
    soaked_weight: Optional[float] = None  # kg
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AbsorptionSample":
        return cls(
            sample_id=str(data.get('sample_id', '')),
            dry_weight=to_number(data.get('dry_weight')),
            soaked_weight=to_number(data.get('soaked_weight')),
            length=to_number(data.get('length')),
            width=to_number(data.get('width')),
            height=to_number(data.get('height')),
        )

    @property
    def absorption(self):
        """(mass difference kg, absorption %)."""
        return water_absorption(self.dry_weight, self.soaked_weight)
