# src/circuitsim_core/netlist/__init__.py
# elements must load first: component modules import it while this package initializes.
from .elements import (
    ElementStamp,
    ResistorStamp,
    VoltageSourceStamp,
    CurrentSourceStamp,
    CapacitorStamp,
    InductorStamp,
    LedStamp,
    DiodeStamp,
    TransistorStamp,
    SineWaveform,
)
from .nets import NetBuilder, NetGraph
from .builder import Netlist, NetlistBuilder, NetlistContext, GROUND_NODE

__all__ = [
    "ElementStamp", "ResistorStamp", "VoltageSourceStamp", "CurrentSourceStamp",
    "CapacitorStamp", "InductorStamp", "LedStamp", "DiodeStamp", "TransistorStamp",
    "SineWaveform",
    "NetBuilder", "NetGraph",
    "Netlist", "NetlistBuilder", "NetlistContext", "GROUND_NODE",
]
