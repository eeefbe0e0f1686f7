# src/circuitsim_core/simulation/outputs.py
"""
The Output Synthesizer: turns one solved operating point into per-component
outputs, the flow-animation sets and the debug snapshot.

Everything here is derived from already-solved voltages and currents plus the
conductivity analysis; no matrix is touched. A singular solve produces outputs
that all read as inactive, carrying the solve's reason where a part reports one.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from ..analysis import ConductivityAnalyzer, PathAnalysisResults
from ..components.base import ComponentBase
from ..components.base_enums import DiodeRegion
from ..components.semiconductors import RGB_CHANNELS
from ..components.switches import SwitchBase
from ..constants import (
    DAMAGE_TICKS_TO_BURNOUT, DAMAGE_TICKS_TO_DAMAGED, I_DIRECTION_EPS, I_EPS, I_FAKE_THRESHOLD,
    I_LED_BURNOUT, I_LED_DAMAGE, I_LED_MIN, I_LED_NOMINAL,
)
from ..data_structures import CircuitSnapshot
from ..netlist.builder import Netlist
from ..netlist.nets import NetGraph
from .device_state import CUTOFF, DeviceState
from .results import (
    BuzzerOutput, CapacitorOutput, ComponentOutput, DebugSnapshot, DiodeOutput, LedOutput, MotorOutput,
    PotentiometerOutput, RgbLedOutput, TransistorOutput, VoltmeterOutput,
)

logger = logging.getLogger(__name__)

FLOATING_REASON = "Floating pin(s)"
NO_CURRENT_REASON = "No current (open loop or no path)"
UNSOLVED_REASON = "Circuit singular or unsolved"


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def next_damage_ticks(ticks: int, current: float) -> int:
    """One solve's worth of LED stress: +2 past burnout current, +1 past damage current, -1 when healthy."""
    if current > I_LED_BURNOUT:
        return ticks + 2
    if current > I_LED_DAMAGE:
        return ticks + 1
    if current <= I_LED_NOMINAL:
        return max(0, ticks - 1)
    return ticks


def led_status(ticks: int, current: float, burned: bool = False) -> str:
    if burned or ticks >= DAMAGE_TICKS_TO_BURNOUT:
        return "burned"
    if ticks >= DAMAGE_TICKS_TO_DAMAGED:
        return "damaged"
    if current > I_LED_NOMINAL:
        return "overcurrent"
    return "ok"


def net_voltages(netlist: Netlist, node_voltages) -> Dict[str, float]:
    """Voltage of every net that owns a matrix node. Floating nets are absent."""
    return {net_id: float(node_voltages[node]) for net_id, node in netlist.net_nodes.items()}


@dataclass(frozen=True)
class SolvedPoint:
    """The slice of one solve the synthesizer reads."""
    net_voltages: Mapping[str, float]
    currents: Mapping[str, float]
    device_state: DeviceState
    singular: bool
    reason: Optional[str]
    paths: PathAnalysisResults
    capacitor_damaged: Mapping[str, bool]


class OutputSynthesizer:
    """Builds outputs for every component that reports one."""

    def __init__(
        self,
        snapshot: CircuitSnapshot,
        net_graph: NetGraph,
        netlist: Netlist,
        analyzer: ConductivityAnalyzer,
    ):
        self.snapshot = snapshot
        self.net_graph = net_graph
        self.netlist = netlist
        self.analyzer = analyzer
        self._builders: Dict[str, Callable[[ComponentBase, SolvedPoint], ComponentOutput]] = {
            "led": self._led,
            "rgb_led": self._rgb_led,
            "motor_dc": self._motor,
            "motor_ac": self._motor,
            "buzzer": self._buzzer,
            "diode": self._diode,
            "transistor": self._transistor,
            "potentiometer": self._potentiometer,
            "voltmeter": self._voltmeter,
            "capacitor": self._capacitor,
            "capacitor_polarized": self._capacitor,
        }

    # --- helpers ---

    def _net(self, component: ComponentBase, pin: str) -> Optional[str]:
        return self.analyzer.net_of(component, pin)

    @staticmethod
    def _voltage(point: SolvedPoint, net_id: Optional[str]) -> Optional[float]:
        if net_id is None:
            return None
        return point.net_voltages.get(net_id)

    # --- public API ---

    def synthesize(self, point: SolvedPoint) -> Dict[str, ComponentOutput]:
        outputs: Dict[str, ComponentOutput] = {}
        for component_id, component in self.snapshot.components.items():
            builder = self._builders.get(component.component_type)
            if builder is not None:
                outputs[component_id] = builder(component, point)
        logger.debug(f"Synthesized {len(outputs)} component output(s) for '{self.snapshot.name}'.")
        return outputs

    def flow_sets(self, point: SolvedPoint) -> Tuple[FrozenSet[str], Dict[Tuple[str, str], float]]:
        """
        Nets touched by any element carrying more than `I_EPS`, and the signed
        current of every such element keyed by its (first net, second net).
        Internal nodes (behind a supply's series resistance) have no net.
        """
        active: Set[str] = set()
        pairs: Dict[Tuple[str, str], float] = {}
        net_of_node = self.netlist.net_of_node
        for element in self.netlist.elements:
            current = point.currents.get(element.element_id, 0.0)
            if abs(current) <= I_EPS:
                continue
            nets = [net_of_node.get(node) for node in element.terminals if node is not None]
            active.update(net for net in nets if net is not None)
            if point.singular or len(element.terminals) != 2:
                continue
            a, b = (net_of_node.get(node) if node is not None else None for node in element.terminals)
            if a is not None and b is not None and a != b:
                pairs[(a, b)] = current
        return frozenset(active), pairs

    # --- per-kind outputs ---

    def _led(self, component: ComponentBase, point: SolvedPoint) -> LedOutput:
        eid = component.instance_id
        net_a, net_k = self._net(component, "anode"), self._net(component, "cathode")
        va, vk = self._voltage(point, net_a), self._voltage(point, net_k)
        floating = va is None or vk is None
        v_drop = (va or 0.0) - (vk or 0.0)
        vf = component.param("forward_voltage")

        current = max(0.0, point.currents.get(eid, 0.0))
        ticks = next_damage_ticks(int(component.state["damage_ticks"]), current)
        status = led_status(ticks, current, component.state["burned"])
        burned = status == "burned"
        on = (
            not point.singular and not burned and point.device_state.led_on(eid)
            and current > I_LED_MIN and v_drop > vf
        )
        if current < I_FAKE_THRESHOLD or not on:
            brightness = 0.0
        else:
            brightness = _clamp01(current / component.param("reference_current"))

        forward_biased = not floating and v_drop > vf
        return_net = point.paths.return_net_id
        has_return = self.analyzer.has_conductive_path(net_k, return_net, point.device_state, exclude=[eid])
        has_feed = self.analyzer.has_conductive_path(
            point.paths.supply_net_id, net_a, point.device_state, exclude=[eid]
        )

        if point.singular:
            reason = point.reason
        elif not on:
            if burned:
                reason = "LED burned out"
            elif current < I_FAKE_THRESHOLD:
                reason = NO_CURRENT_REASON
            elif v_drop <= 0:
                reason = "Not forward biased"
            else:
                reason = f"Insufficient voltage (Va-Vk={v_drop:.2f}V)"
        elif current > I_LED_NOMINAL:
            reason = "Resistor recommended"
        else:
            reason = None
        if status == "damaged":
            reason = f"{reason}; LED damaged" if reason else "LED damaged"
        elif burned and reason != "LED burned out":
            reason = f"{reason}; LED burned out" if reason else "LED burned out"

        reason_if_not = None
        if not on:
            if floating:
                reason_if_not = FLOATING_REASON
            elif not forward_biased:
                reason_if_not = "Not forward biased"
            elif return_net is None:
                reason_if_not = "No reference/return net"
            elif not has_return:
                reason_if_not = "No conductive return path to battery- / GND"
            elif not has_feed:
                reason_if_not = "No conductive feed path from battery+"
            else:
                reason_if_not = reason

        return LedOutput(
            on=on,
            current=current,
            voltage_drop=v_drop,
            brightness=brightness,
            power=v_drop * current,
            status=status,
            damage_ticks=ticks,
            forward_biased=forward_biased,
            has_return_path=has_return,
            has_feed_path=has_feed,
            reason=reason,
            reason_if_not=reason_if_not,
        )

    def _rgb_led(self, component: ComponentBase, point: SolvedPoint) -> RgbLedOutput:
        iref = component.param("reference_current")
        brightness: List[float] = []
        currents: List[float] = []
        drops: List[float] = []
        channels_on: List[bool] = []
        for channel in RGB_CHANNELS:
            eid = component.channel_element_id(channel)
            anode_pin, cathode_pin = component.channel_pins(channel)
            va = self._voltage(point, self._net(component, anode_pin)) or 0.0
            vk = self._voltage(point, self._net(component, cathode_pin)) or 0.0
            current = max(0.0, point.currents.get(eid, 0.0))
            lit = not point.singular and point.device_state.led_on(eid) and current > I_LED_MIN
            brightness.append(0.0 if current < I_FAKE_THRESHOLD or point.singular else _clamp01(current / iref))
            currents.append(current)
            drops.append(va - vk)
            channels_on.append(lit)
        return RgbLedOutput(tuple(brightness), tuple(currents), tuple(drops), tuple(channels_on))

    def _motor(self, component: ComponentBase, point: SolvedPoint) -> MotorOutput:
        va = self._voltage(point, self._net(component, "P")) or 0.0
        vb = self._voltage(point, self._net(component, "N")) or 0.0
        current = point.currents.get(component.instance_id, 0.0)
        magnitude = abs(current)
        spinning = not point.singular and magnitude > component.param("min_spin_current")

        reason = None
        if point.singular:
            reason = UNSOLVED_REASON
        elif not spinning:
            reason = NO_CURRENT_REASON
        if not point.paths.has_return_path:
            spinning = False
            reason = reason or "No closed loop"

        if current > I_DIRECTION_EPS:
            direction = 1
        elif current < -I_DIRECTION_EPS:
            direction = -1
        else:
            direction = 0
        return MotorOutput(
            spinning=spinning,
            speed=min(1.0, magnitude / component.param("nominal_current")) if spinning else 0.0,
            current=current,
            voltage=va - vb,
            va=va,
            vb=vb,
            direction=direction,
            power=(va - vb) * current,
            reason_if_not=reason,
        )

    def _buzzer(self, component: ComponentBase, point: SolvedPoint) -> BuzzerOutput:
        v_plus = self._voltage(point, self._net(component, "P"))
        v_minus = self._voltage(point, self._net(component, "N"))
        connected = v_plus is not None and v_minus is not None
        v_plus, v_minus = v_plus or 0.0, v_minus or 0.0
        v_buzzer = v_plus - v_minus
        current = point.currents.get(component.instance_id, 0.0)
        v_min = component.param("min_voltage")
        active = component.state["mode"] == "active"

        audible = (
            not point.singular and active and connected and v_buzzer >= v_min
            and abs(current) >= component.param("min_current") and v_buzzer > 0
        )
        reason = None
        if not audible:
            if point.singular:
                reason = UNSOLVED_REASON
            elif not active:
                reason = "Requires PWM/AC input"
            elif not connected:
                reason = FLOATING_REASON
            elif v_buzzer < 0:
                reason = "Reversed polarity"
            elif v_buzzer < v_min:
                reason = f"Vbuz < Vmin ({v_buzzer:.2f}V < {v_min}V)"
            else:
                reason = NO_CURRENT_REASON
        return BuzzerOutput(audible, v_plus, v_minus, v_buzzer, current, reason)

    def _diode(self, component: ComponentBase, point: SolvedPoint) -> DiodeOutput:
        eid = component.instance_id
        va = self._voltage(point, self._net(component, "anode"))
        vk = self._voltage(point, self._net(component, "cathode"))
        floating = va is None or vk is None
        vd = (va or 0.0) - (vk or 0.0)
        region = DiodeRegion.OFF if floating or point.singular else point.device_state.diode_region(eid)
        current = point.currents.get(eid, 0.0)

        reason = None
        if point.singular:
            reason = point.reason
        elif floating:
            reason = FLOATING_REASON
        elif region is DiodeRegion.OFF and vd < component.param("forward_voltage"):
            reason = "Not forward biased"
        return DiodeOutput(region.name, vd, current, vd * current, reason)

    def _transistor(self, component: ComponentBase, point: SolvedPoint) -> TransistorOutput:
        eid = component.instance_id
        vb = self._voltage(point, self._net(component, "B"))
        vc = self._voltage(point, self._net(component, "C"))
        ve = self._voltage(point, self._net(component, "E"))
        sign = 1.0 if component.is_npn else -1.0
        floating = point.singular or vb is None or vc is None or ve is None

        operating_point = point.device_state.transistor_point(eid) or CUTOFF
        if floating:
            region, ib = "floating", 0.0
        else:
            region, ib = operating_point.region.name.lower(), operating_point.base_current
        return TransistorOutput(
            polarity=component.state["polarity"],
            region=region,
            vb=vb,
            vc=vc,
            ve=ve,
            vbe=sign * (vb - ve) if vb is not None and ve is not None else None,
            vce=sign * (vc - ve) if vc is not None and ve is not None else None,
            ib=ib,
            ic=abs(point.currents.get(eid, 0.0)),
        )

    def _potentiometer(self, component: ComponentBase, point: SolvedPoint) -> PotentiometerOutput:
        cid = component.instance_id
        r_top, r_bot = component.segment_resistances()
        v_in = self._voltage(point, self._net(component, "IN"))
        v_out = self._voltage(point, self._net(component, "OUT"))
        v_gnd = self._voltage(point, self._net(component, "GND"))
        floating = v_in is None or v_out is None or v_gnd is None

        i_top = abs(point.currents.get(f"{cid}:R_top", 0.0))
        i_bot = abs(point.currents.get(f"{cid}:R_bot", 0.0))
        p_top = abs(((v_in or 0.0) - (v_out or 0.0)) * i_top)
        p_bot = abs(((v_out or 0.0) - (v_gnd or 0.0)) * i_bot)
        if point.singular:
            i_top = i_bot = p_top = p_bot = 0.0
        return PotentiometerOutput(
            total_resistance=component.param("total_resistance"),
            position=component.param("position"),
            r_top=r_top,
            r_bot=r_bot,
            v_in=v_in,
            v_out=v_out,
            v_gnd=v_gnd,
            i_top=i_top,
            i_bot=i_bot,
            p_top=p_top,
            p_bot=p_bot,
            floating=floating,
        )

    def _voltmeter(self, component: ComponentBase, point: SolvedPoint) -> VoltmeterOutput:
        net_plus, net_minus = self._net(component, "pos"), self._net(component, "neg")
        connected = net_plus is not None and net_minus is not None
        v_plus, v_minus = self._voltage(point, net_plus), self._voltage(point, net_minus)
        floating = connected and (point.singular or v_plus is None or v_minus is None)

        volts = None
        if connected and net_plus == net_minus:
            volts = 0.0
        elif connected and not floating:
            volts = v_plus - v_minus
        return VoltmeterOutput(volts, connected, floating, net_plus, net_minus, v_plus, v_minus)

    def _capacitor(self, component: ComponentBase, point: SolvedPoint) -> CapacitorOutput:
        cid = component.instance_id
        pin_a, pin_b = component.terminals
        va = self._voltage(point, self._net(component, pin_a)) or 0.0
        vb = self._voltage(point, self._net(component, pin_b)) or 0.0
        voltage = va - vb
        reversed_ = component.polarized and voltage < 0
        damaged = component.polarized and (
            point.capacitor_damaged.get(cid, False) or bool(component.state.get("damaged", False))
        )
        return CapacitorOutput(
            voltage=voltage,
            current=point.currents.get(cid, 0.0),
            energy=0.5 * component.param("capacitance") * voltage ** 2,
            reversed=reversed_,
            damaged=damaged,
        )

    # --- debug snapshot ---

    def debug_snapshot(self, point: SolvedPoint, outputs: Mapping[str, ComponentOutput]) -> DebugSnapshot:
        battery = None
        supply_current = 0.0
        for supply in self.snapshot.components_of_type("dc_supply"):
            net_p, net_n = self._net(supply, "pos"), self._net(supply, "neg")
            supply_current = point.currents.get(supply.instance_id, 0.0)
            battery = {
                "id": supply.instance_id,
                "voltage": supply.effective_voltage,
                "net_pos": net_p,
                "net_neg": net_n,
                "v_pos": self._voltage(point, net_p),
                "v_neg": self._voltage(point, net_n),
                "current": supply_current,
            }
            break

        switch = None
        for component in self.snapshot.components.values():
            if isinstance(component, SwitchBase):
                contact = component.contacts()[0]
                switch = {
                    "id": component.instance_id,
                    "on": any(c.closed for c in component.contacts()),
                    "va": self._voltage(point, self._net(component, contact.pin_a)),
                    "vb": self._voltage(point, self._net(component, contact.pin_b)),
                    "current": point.currents.get(component.contact_element_id(contact), 0.0),
                }
                break

        def first(type_str: str) -> Optional[Dict[str, object]]:
            for component in self.snapshot.components_of_type(type_str):
                output = outputs.get(component.instance_id)
                if output is not None:
                    return {"id": component.instance_id, **vars(output)}
            return None

        motor = first("motor_dc") or first("motor_ac")
        loop_closed = not point.singular and abs(supply_current) > I_EPS
        reason = None
        if not loop_closed:
            reason = point.reason if point.singular else NO_CURRENT_REASON
        return DebugSnapshot(
            battery=battery,
            switch=switch,
            led=first("led"),
            motor=motor,
            diode=first("diode"),
            loop_closed=loop_closed,
            reason_if_not=reason,
        )
