# src/circuitsim_core/netlist/elements.py
"""
Canonical element stamps emitted by the Netlist Builder.

Terminals are matrix node indices (ground = 0). A terminal of None means the
pin sits in a net that was excluded from the matrix (floating); such elements
are kept for reporting but never stamped. The linear kinds are stamped
directly; LEDs, diodes and transistors are expanded into linear companions by
the device iterator according to their assumed discrete state.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

Node = Optional[int]


@dataclass(frozen=True)
class ElementStamp:
    element_id: str
    component_id: str

    @property
    def terminals(self) -> Tuple[Node, ...]:
        raise NotImplementedError

    @property
    def floating(self) -> bool:
        return any(node is None for node in self.terminals)


@dataclass(frozen=True)
class ResistorStamp(ElementStamp):
    """Ohmic branch: resistors, switch contacts, motors, buzzers, pot segments."""
    a: Node
    b: Node
    resistance: float

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.a, self.b)


@dataclass(frozen=True)
class SineWaveform:
    amplitude: float
    frequency_hz: float
    phase_deg: float = 0.0

    def value_at(self, time: float) -> float:
        return self.amplitude * math.sin(2.0 * math.pi * self.frequency_hz * time + math.radians(self.phase_deg))


@dataclass(frozen=True)
class VoltageSourceStamp(ElementStamp):
    """
    Ideal source holding V(positive) - V(negative). Its branch current unknown
    is the current flowing into the positive terminal through the source, so a
    source delivering power reports a negative current.
    """
    positive: Node
    negative: Node
    voltage: float
    waveform: Optional[SineWaveform] = None

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.positive, self.negative)

    def value_at(self, time: Optional[float]) -> float:
        if time is None or self.waveform is None:
            return self.voltage
        return self.voltage + self.waveform.value_at(time)


@dataclass(frozen=True)
class CurrentSourceStamp(ElementStamp):
    """Fixed current flowing from `a` through the source to `b`."""
    a: Node
    b: Node
    current: float

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.a, self.b)


@dataclass(frozen=True)
class CapacitorStamp(ElementStamp):
    a: Node
    b: Node
    capacitance: float
    leakage_resistance: float
    polarized: bool = False
    reverse_voltage_limit: float = math.inf

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.a, self.b)


@dataclass(frozen=True)
class InductorStamp(ElementStamp):
    a: Node
    b: Node
    inductance: float

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.a, self.b)


@dataclass(frozen=True)
class LedStamp(ElementStamp):
    anode: Node
    cathode: Node
    forward_voltage: float
    on_resistance: float
    off_resistance: float
    burned: bool = False

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.anode, self.cathode)


@dataclass(frozen=True)
class DiodeStamp(ElementStamp):
    anode: Node
    cathode: Node
    forward_voltage: float
    on_resistance: float
    breakdown_voltage: float
    breakdown_resistance: float
    off_resistance: float

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.anode, self.cathode)


@dataclass(frozen=True)
class TransistorStamp(ElementStamp):
    """
    Piecewise-linear bipolar transistor. A floating base leaves the base-emitter
    junction unstamped (the device stays in cutoff); collector and emitter are
    required.
    """
    base: Node
    collector: Node
    emitter: Node
    polarity: str
    beta: float
    vbe_on: float
    vce_sat: float
    base_resistance: float
    off_resistance: float

    @property
    def terminals(self) -> Tuple[Node, ...]:
        return (self.collector, self.emitter)

    @property
    def sign(self) -> float:
        return 1.0 if self.polarity == "NPN" else -1.0


LINEAR_STAMP_TYPES = (ResistorStamp, VoltageSourceStamp, CurrentSourceStamp, CapacitorStamp, InductorStamp)
NONLINEAR_STAMP_TYPES = (LedStamp, DiodeStamp, TransistorStamp)
