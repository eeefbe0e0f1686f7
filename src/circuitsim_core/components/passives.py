# src/circuitsim_core/components/passives.py
"""
Concrete implementations of the linear parts: resistor, potentiometer,
capacitors, inductor, motors, buzzer, plus the measurement-only voltmeter.
"""

import logging
from typing import Dict, List, Tuple

from ..constants import (
    CAPACITOR_REVERSE_RATIO, POT_LOG_TAPER_GAMMA, R_BUZZER_PASSIVE, R_MIN_POT
)
from ..netlist.elements import CapacitorStamp, InductorStamp, ResistorStamp
from .base import ComponentBase, TwoTerminalComponent, register_component
from .capabilities import (
    ConductiveEdge, INetlistContributor, IConductionContributor, ITopologyContributor, provides
)
from .fields import ParameterSpec, StateSpec

logger = logging.getLogger(__name__)

POLARIZED_PIN_ALIASES = {
    "+": "P", "POS": "P", "positive": "P", "M+": "P",
    "-": "N", "NEG": "N", "negative": "N", "M-": "N",
}


def _stamp_nodes(component: TwoTerminalComponent, context):
    a, b = component.terminals
    return context.node(component, a), context.node(component, b)


class OhmicComponent(TwoTerminalComponent):
    """Two-terminal part stamped as a single resistance between its pins."""

    def stamped_resistance(self) -> float:
        return self.param("resistance")

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "OhmicComponent", context) -> None:
            a, b = _stamp_nodes(component, context)
            context.add(ResistorStamp(component.instance_id, component.instance_id, a, b, component.stamped_resistance()))


@register_component("resistor")
class Resistor(OhmicComponent):

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["a", "b"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"pin1": "a", "pin2": "b", "P1": "a", "P2": "b"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"resistance": ParameterSpec("ohm", 220.0, minimum=0.0, floor=1e-6, aliases=("resistanceOhms", "ohms"))}


class Motor(OhmicComponent):
    """A DC or AC motor modelled by its winding resistance."""
    DEFAULT_RESISTANCE: float = 10.0

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P", "N"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return POLARIZED_PIN_ALIASES

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "resistance": ParameterSpec("ohm", cls.DEFAULT_RESISTANCE, minimum=0.0, floor=0.1, aliases=("rOhms", "r")),
            "nominal_current": ParameterSpec("ampere", 0.2, minimum=0.0, floor=0.01, aliases=("iNom",)),
            "min_spin_current": ParameterSpec("ampere", 0.01, minimum=0.0, aliases=("iMinSpin",)),
        }


@register_component("motor_dc")
class DcMotor(Motor):
    DEFAULT_RESISTANCE = 10.0


@register_component("motor_ac")
class AcMotor(Motor):
    DEFAULT_RESISTANCE = 20.0


@register_component("buzzer")
class Buzzer(OhmicComponent):
    """An active buzzer sounds from DC; a passive one needs a PWM/AC drive and is stamped open."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P", "N"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return POLARIZED_PIN_ALIASES

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "resistance": ParameterSpec("ohm", 167.0, minimum=0.0, floor=1.0, aliases=("rOn",)),
            "min_voltage": ParameterSpec("volt", 2.0, minimum=0.0, aliases=("vMin",)),
            "min_current": ParameterSpec("ampere", 0.0005, minimum=0.0, aliases=("iMin",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"mode": StateSpec("active", allowed=("active", "passive"))}

    def stamped_resistance(self) -> float:
        if self.state["mode"] == "passive":
            return R_BUZZER_PASSIVE
        return self.param("resistance")


@register_component("capacitor")
class Capacitor(TwoTerminalComponent):
    """Non-polarized capacitor. Open (leakage only) at DC, Backward-Euler companion in transient."""
    polarized = False

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["a", "b"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"pin1": "a", "pin2": "b"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "capacitance": ParameterSpec("farad", 1e-6, minimum=0.0, floor=1e-12),
            "leakage_resistance": ParameterSpec("ohm", 1e8, minimum=0.0, floor=1.0, aliases=("rLeak",)),
            "rated_voltage": ParameterSpec("volt", 16.0, minimum=0.0, aliases=("ratedVoltage",)),
            "reverse_voltage_limit": ParameterSpec("volt", 1.0, minimum=0.0, aliases=("reverseVmax",)),
        }

    @property
    def reverse_voltage_limit(self) -> float:
        return min(self.param("reverse_voltage_limit"), self.param("rated_voltage") * CAPACITOR_REVERSE_RATIO)

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Capacitor", context) -> None:
            a, b = _stamp_nodes(component, context)
            context.add(CapacitorStamp(
                component.instance_id, component.instance_id, a, b,
                capacitance=component.param("capacitance"),
                leakage_resistance=component.param("leakage_resistance"),
                polarized=component.polarized,
                reverse_voltage_limit=component.reverse_voltage_limit,
            ))


@register_component("capacitor_polarized")
class PolarizedCapacitor(Capacitor):
    """Electrolytic capacitor. Reverse voltage beyond its limit marks it damaged for good."""
    polarized = True

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P", "N"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return POLARIZED_PIN_ALIASES

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"damaged": StateSpec(False)}


@register_component("inductor")
class Inductor(TwoTerminalComponent):

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["a", "b"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"pin1": "a", "pin2": "b"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"inductance": ParameterSpec("henry", 1e-3, minimum=0.0, floor=1e-12)}

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Inductor", context) -> None:
            a, b = _stamp_nodes(component, context)
            context.add(InductorStamp(component.instance_id, component.instance_id, a, b, component.param("inductance")))


@register_component("potentiometer")
class Potentiometer(ComponentBase):
    """
    Three-terminal pot, split at the wiper into R_top (IN-OUT) and R_bot
    (OUT-GND). The log taper warps the position with a fixed gamma.
    """

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["IN", "OUT", "GND"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"vcc": "IN", "signal": "OUT", "out": "OUT", "wiper": "OUT", "gnd": "GND"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "total_resistance": ParameterSpec("ohm", 10_000.0, minimum=0.0, floor=2 * R_MIN_POT + 1e-6, aliases=("rTotalOhms",)),
            "position": ParameterSpec("", 0.5, floor=0.0, ceiling=1.0, aliases=("alpha",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"taper": StateSpec("linear", allowed=("linear", "log"))}

    @property
    def effective_position(self) -> float:
        alpha = self.param("position")
        if self.state["taper"] == "log":
            return alpha ** POT_LOG_TAPER_GAMMA
        return alpha

    def segment_resistances(self) -> Tuple[float, float]:
        total = self.param("total_resistance")
        r_top = min(max(self.effective_position * total, R_MIN_POT), total - R_MIN_POT)
        r_bot = max(R_MIN_POT, total - r_top)
        return r_top, r_bot

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Potentiometer", context) -> None:
            n_in = context.node(component, "IN")
            n_out = context.node(component, "OUT")
            n_gnd = context.node(component, "GND")
            r_top, r_bot = component.segment_resistances()
            context.add(ResistorStamp(f"{component.instance_id}:R_top", component.instance_id, n_in, n_out, r_top))
            context.add(ResistorStamp(f"{component.instance_id}:R_bot", component.instance_id, n_out, n_gnd, r_bot))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "Potentiometer") -> List[tuple]:
            return [("IN", "OUT"), ("OUT", "GND"), ("IN", "GND")]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "Potentiometer", device_state) -> List[ConductiveEdge]:
            return [ConductiveEdge("IN", "OUT"), ConductiveEdge("OUT", "GND"), ConductiveEdge("IN", "GND")]


@register_component("voltmeter")
class Voltmeter(ComponentBase):
    """Ideal probe pair. Reads V(pos) - V(neg) from the solution and is never stamped."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["pos", "neg"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"+": "pos", "-": "neg", "P": "pos", "N": "neg"}
