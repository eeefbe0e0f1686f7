# src/circuitsim_core/simulation/device_state.py
"""
Discrete device state and the hysteresis rules that update it.

A `DeviceState` maps element ids to the region each nonlinear device is assumed
to be in for the next linear solve. The update functions re-derive a device's
natural region from solved voltages. A device only changes region once the
voltage crosses its threshold by more than the hysteresis margin, which keeps
the fixed-point loop from chattering at a bare threshold.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from ..components.base_enums import DiodeRegion, TransistorRegion
from ..constants import I_MIN_SATURATION, R_MIN_SATURATION
from ..netlist.builder import Netlist
from ..netlist.elements import DiodeStamp, LedStamp, TransistorStamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransistorOperatingPoint:
    """Assumed operating point of one transistor."""
    region: TransistorRegion = TransistorRegion.CUTOFF
    base_on: bool = False
    base_current: float = 0.0
    collector_current: float = 0.0
    saturation_resistance: float = 0.0

    def matches(self, other: "TransistorOperatingPoint", tolerance: float) -> bool:
        if self.region is not other.region or self.base_on != other.base_on:
            return False
        if abs(self.base_current - other.base_current) > tolerance:
            return False
        if abs(self.collector_current - other.collector_current) > tolerance:
            return False
        scale = max(1.0, abs(self.saturation_resistance), abs(other.saturation_resistance))
        return abs(self.saturation_resistance - other.saturation_resistance) <= tolerance * scale


CUTOFF = TransistorOperatingPoint()


@dataclass
class DeviceState:
    """Current discrete state of every nonlinear device, keyed by element id."""
    leds: Dict[str, bool] = field(default_factory=dict)
    diodes: Dict[str, DiodeRegion] = field(default_factory=dict)
    transistors: Dict[str, TransistorOperatingPoint] = field(default_factory=dict)

    @classmethod
    def initial(cls, netlist: Netlist) -> "DeviceState":
        """All LEDs and diodes OFF, all transistors in cutoff."""
        return cls(
            leds={e.element_id: False for e in netlist.elements_of_type(LedStamp)},
            diodes={e.element_id: DiodeRegion.OFF for e in netlist.elements_of_type(DiodeStamp)},
            transistors={e.element_id: CUTOFF for e in netlist.elements_of_type(TransistorStamp)},
        )

    def copy(self) -> "DeviceState":
        return DeviceState(dict(self.leds), dict(self.diodes), dict(self.transistors))

    def led_on(self, element_id: str) -> bool:
        return self.leds.get(element_id, False)

    def diode_region(self, element_id: str) -> DiodeRegion:
        return self.diodes.get(element_id, DiodeRegion.OFF)

    def transistor_point(self, element_id: str) -> Optional[TransistorOperatingPoint]:
        return self.transistors.get(element_id)

    def same_as(self, other: "DeviceState", tolerance: float) -> bool:
        if self.leds != other.leds or self.diodes != other.diodes:
            return False
        if self.transistors.keys() != other.transistors.keys():
            return False
        return all(
            point.matches(other.transistors[element_id], tolerance)
            for element_id, point in self.transistors.items()
        )

    def changed_devices(self, other: "DeviceState", tolerance: float) -> int:
        """Number of devices whose state differs from `other` (for logging)."""
        count = sum(1 for k, v in self.leds.items() if other.leds.get(k) != v)
        count += sum(1 for k, v in self.diodes.items() if other.diodes.get(k) is not v)
        count += sum(
            1 for k, v in self.transistors.items()
            if k not in other.transistors or not v.matches(other.transistors[k], tolerance)
        )
        return count


def next_led_state(led: LedStamp, was_on: bool, v_across: float, hysteresis: float) -> bool:
    """An ON LED stays on until V drops below Vf - h; an OFF LED turns on above Vf + h."""
    if led.burned:
        return False
    if was_on:
        return v_across >= led.forward_voltage - hysteresis
    return v_across > led.forward_voltage + hysteresis


def next_diode_region(diode: DiodeStamp, previous: DiodeRegion, v_across: float, hysteresis: float) -> DiodeRegion:
    """Forward hysteresis around Vf, reverse hysteresis around -Vbr."""
    v_br = diode.breakdown_voltage
    if previous is DiodeRegion.BREAKDOWN:
        if v_across <= -(v_br - hysteresis):
            return DiodeRegion.BREAKDOWN
    elif v_across < -(v_br + hysteresis):
        return DiodeRegion.BREAKDOWN

    if previous is DiodeRegion.ON:
        return DiodeRegion.ON if v_across >= diode.forward_voltage - hysteresis else DiodeRegion.OFF
    return DiodeRegion.ON if v_across > diode.forward_voltage + hysteresis else DiodeRegion.OFF


def next_transistor_point(
    transistor: TransistorStamp,
    previous: TransistorOperatingPoint,
    vb: float,
    vc: float,
    ve: float,
    hysteresis: float,
) -> TransistorOperatingPoint:
    """
    Recomputes base current, target collector current (beta * Ib) and the
    collector-emitter region from solved terminal voltages.
    """
    sign = transistor.sign
    vbe = sign * (vb - ve)
    vce = sign * (vc - ve)

    if transistor.base is None:
        return CUTOFF
    if previous.base_on:
        base_on = vbe >= transistor.vbe_on - hysteresis
    else:
        base_on = vbe > transistor.vbe_on + hysteresis
    if not base_on:
        return CUTOFF

    ib = max(0.0, (vbe - transistor.vbe_on) / transistor.base_resistance)
    ic = transistor.beta * ib
    if vce <= transistor.vce_sat:
        r_sat = max(R_MIN_SATURATION, transistor.vce_sat / max(ic, I_MIN_SATURATION))
        return TransistorOperatingPoint(TransistorRegion.SATURATION, True, ib, ic, r_sat)
    return replace(CUTOFF, region=TransistorRegion.ACTIVE, base_on=True, base_current=ib, collector_current=ic)
