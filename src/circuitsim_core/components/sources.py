# src/circuitsim_core/components/sources.py
"""
Supplies and reference symbols: the DC (optionally sinusoidal) supply, the
ground symbol and the power rail.
"""

import logging
from typing import Dict, List, Optional

from ..netlist.elements import ResistorStamp, SineWaveform, VoltageSourceStamp
from .base import ComponentBase, register_component
from .capabilities import INetlistContributor, provides
from .fields import ParameterSpec, StateSpec

logger = logging.getLogger(__name__)


@register_component("dc_supply")
class DcSupply(ComponentBase):
    """
    Battery / bench supply. Stamped as an ideal source behind a series internal
    resistance that lives on a synthetic internal node.
    """

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["pos", "neg"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"+": "pos", "-": "neg", "P": "pos", "N": "neg", "positive": "pos", "negative": "neg"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "voltage": ParameterSpec("volt", 5.0, floor=0.0, aliases=("v", "volts")),
            "max_voltage": ParameterSpec("volt", 12.0, floor=1.0, aliases=("vMax",)),
            "internal_resistance": ParameterSpec("ohm", 50.0, minimum=0.0, aliases=("rInternal",)),
            "ac_amplitude": ParameterSpec("volt", 0.0, minimum=0.0, aliases=("amplitude",)),
            "frequency": ParameterSpec("hertz", 1.0, floor=0.001, aliases=("frequencyHz",)),
            "phase": ParameterSpec("degree", 0.0, aliases=("phaseDeg",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"ac_enabled": StateSpec(False, aliases=("acEnabled",))}

    def ground_ports(self) -> List[str]:
        return ["neg"]

    @property
    def effective_voltage(self) -> float:
        return min(self.param("voltage"), self.param("max_voltage"))

    @property
    def waveform(self) -> Optional[SineWaveform]:
        if not self.state["ac_enabled"] or self.param("ac_amplitude") <= 0:
            return None
        return SineWaveform(self.param("ac_amplitude"), self.param("frequency"), self.param("phase"))

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "DcSupply", context) -> None:
            pos = context.node(component, "pos")
            neg = context.node(component, "neg")
            if pos is None or neg is None:
                context.warn(f"Battery {component.instance_id}: floating pin")
                return

            r_internal = component.param("internal_resistance")
            source_pos = pos
            if r_internal > 0:
                source_pos = context.allocate_node()
                context.add(ResistorStamp(f"{component.instance_id}:r_internal", component.instance_id, pos, source_pos, r_internal))
            context.add(VoltageSourceStamp(
                component.instance_id, component.instance_id, source_pos, neg,
                component.effective_voltage, component.waveform,
            ))


@register_component("ground")
class Ground(ComponentBase):
    """The 0V reference symbol."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["gnd"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"GND": "gnd", "out": "gnd"}

    def ground_ports(self) -> List[str]:
        return ["gnd"]


@register_component("power_rail")
class PowerRail(ComponentBase):
    """
    A labelled rail. A `gnd` rail joins the ground net; a `vcc` rail is an ideal
    source from its pin to ground.
    """

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["out"]

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"voltage": ParameterSpec("volt", 5.0, floor=0.0)}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"kind": StateSpec("gnd", allowed=("gnd", "vcc"))}

    def ground_ports(self) -> List[str]:
        return ["out"] if self.state["kind"] == "gnd" else []

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "PowerRail", context) -> None:
            if component.state["kind"] != "vcc":
                return
            out = context.node(component, "out")
            if out is None:
                context.warn(f"Rail {component.instance_id}: floating pin")
                return
            context.add(VoltageSourceStamp(
                component.instance_id, component.instance_id, out, context.ground_node, component.param("voltage")
            ))
