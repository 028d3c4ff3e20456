"""Data models for specimens."""
from .specimen import (
    HoleDimension, BlockType,
    CubeSample, CylinderSample, PaverSample, BlockSample, AbsorptionSample,
)

__all__ = ['HoleDimension', 'BlockType',
           'CubeSample', 'CylinderSample', 'PaverSample', 'BlockSample',
           'AbsorptionSample']
