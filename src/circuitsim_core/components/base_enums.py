# src/circuitsim_core/components/base_enums.py
from enum import Enum, auto


class DiodeRegion(Enum):
    """Discrete operating region assumed for a diode during one linear solve."""
    OFF = auto()
    ON = auto()
    BREAKDOWN = auto()


class TransistorRegion(Enum):
    """Discrete collector-emitter region assumed for a bipolar transistor."""
    CUTOFF = auto()
    ACTIVE = auto()
    SATURATION = auto()
