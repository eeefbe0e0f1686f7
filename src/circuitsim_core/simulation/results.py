# src/circuitsim_core/simulation/results.py
"""
Typed results of a solve.

Every per-component output is an immutable dataclass; `SolveResult` bundles
them with node/net voltages, branch currents, the reachability sets used for
current-flow animation and a compact debug snapshot. Consumers read named
attributes instead of probing dictionaries.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from ..data_structures import Net
from ..validation import ValidationIssue
from .device_state import DeviceState
from .transient import TransientState


@dataclass(frozen=True)
class LedOutput:
    on: bool
    current: float
    voltage_drop: float
    brightness: float
    power: float
    status: str
    damage_ticks: int
    forward_biased: bool = False
    has_return_path: bool = False
    has_feed_path: bool = False
    reason: Optional[str] = None
    reason_if_not: Optional[str] = None


@dataclass(frozen=True)
class RgbLedOutput:
    brightness: Tuple[float, float, float]
    current: Tuple[float, float, float]
    voltage_drop: Tuple[float, float, float]
    channels_on: Tuple[bool, bool, bool]

    @property
    def mixed_color(self) -> Dict[str, float]:
        r, g, b = self.brightness
        return {"r": r, "g": g, "b": b}


@dataclass(frozen=True)
class MotorOutput:
    spinning: bool
    speed: float
    current: float
    voltage: float
    va: float
    vb: float
    direction: int
    power: float
    reason_if_not: Optional[str] = None


@dataclass(frozen=True)
class BuzzerOutput:
    audible: bool
    v_plus: float
    v_minus: float
    v_buzzer: float
    current: float
    reason_if_not: Optional[str] = None


@dataclass(frozen=True)
class DiodeOutput:
    region: str
    voltage: float
    current: float
    power: float
    reason_if_not: Optional[str] = None


@dataclass(frozen=True)
class TransistorOutput:
    polarity: str
    region: str
    vb: Optional[float]
    vc: Optional[float]
    ve: Optional[float]
    vbe: Optional[float]
    vce: Optional[float]
    ib: float
    ic: float


@dataclass(frozen=True)
class PotentiometerOutput:
    total_resistance: float
    position: float
    r_top: float
    r_bot: float
    v_in: Optional[float]
    v_out: Optional[float]
    v_gnd: Optional[float]
    i_top: float
    i_bot: float
    p_top: float
    p_bot: float
    floating: bool

    @property
    def p_total(self) -> float:
        return self.p_top + self.p_bot


@dataclass(frozen=True)
class VoltmeterOutput:
    """`volts` is None when a probe is unconnected or the solve has no valid voltages."""
    volts: Optional[float]
    connected: bool
    floating: bool
    net_plus: Optional[str]
    net_minus: Optional[str]
    v_plus: Optional[float]
    v_minus: Optional[float]


@dataclass(frozen=True)
class CapacitorOutput:
    voltage: float
    current: float
    energy: float
    reversed: bool = False
    damaged: bool = False


ComponentOutput = Union[
    LedOutput, RgbLedOutput, MotorOutput, BuzzerOutput, DiodeOutput, TransistorOutput,
    PotentiometerOutput, VoltmeterOutput, CapacitorOutput,
]


@dataclass(frozen=True)
class DebugSnapshot:
    """
    A flat summary of the first supply, switch, LED, motor and diode of the
    circuit, plus whether the supply loop is energized. Each section is a plain
    dict (or None when the circuit has no such part) so it can be dumped as-is.
    """
    battery: Optional[Dict[str, object]]
    switch: Optional[Dict[str, object]]
    led: Optional[Dict[str, object]]
    motor: Optional[Dict[str, object]]
    diode: Optional[Dict[str, object]]
    loop_closed: bool
    reason_if_not: Optional[str] = None

    @property
    def energized(self) -> Dict[str, object]:
        return {"loop_closed": self.loop_closed, "reason_if_not": self.reason_if_not}


@dataclass(frozen=True)
class SolveResult:
    """
    Everything one DC solve or transient step produced.

    A singular solve is not an error: `singular` is True, `reason` says why,
    voltages and currents are zero and every output reads as inactive.
    """
    mode: str
    time: Optional[float]
    node_voltages: Tuple[float, ...]
    net_voltages: Dict[str, float]
    branch_currents: Dict[str, float]
    outputs: Dict[str, ComponentOutput]
    device_state: DeviceState
    singular: bool
    reason: Optional[str]
    converged: bool
    iterations: int
    warnings: Tuple[str, ...]
    issues: Tuple[ValidationIssue, ...]
    nets: Tuple[Net, ...]
    net_of_pin: Dict[str, str]
    ground_net_id: Optional[str]
    has_topology_path: bool
    has_return_path: bool
    active_net_ids: FrozenSet[str]
    feed_net_ids: FrozenSet[str]
    net_pair_currents: Dict[Tuple[str, str], float]
    debug: DebugSnapshot

    @property
    def loop_closed(self) -> bool:
        return self.has_return_path

    def output(self, component_id: str) -> Optional[ComponentOutput]:
        return self.outputs.get(component_id)


@dataclass(frozen=True)
class TransientRunResult:
    """The last step of a transient run, the history it left behind and the time axis it covered."""
    last_result: SolveResult
    state: TransientState
    times: List[float] = field(default_factory=list)
    steps: int = 0
