# src/circuitsim_core/components/semiconductors.py
"""
Piecewise-linear semiconductors: LED, RGB LED, diode and bipolar transistor.

The components only declare their parameters and pins here. The discrete
region each device is in (ON/OFF, BREAKDOWN, CUTOFF/ACTIVE/SATURATION) is owned
by the device iterator's `DeviceState`, which the conduction capability reads
to decide which directed edges exist.
"""

import logging
from typing import Dict, List, Tuple

from ..constants import R_OFF_DIODE
from ..netlist.elements import DiodeStamp, LedStamp, TransistorStamp
from .base import ComponentBase, register_component
from .base_enums import DiodeRegion, TransistorRegion
from .capabilities import (
    ConductiveEdge, INetlistContributor, IConductionContributor, ITopologyContributor, provides
)
from .fields import ParameterSpec, StateSpec

logger = logging.getLogger(__name__)

DIODE_PIN_ALIASES = {"A": "anode", "K": "cathode", "+": "anode", "-": "cathode"}
RGB_CHANNELS = ("R", "G", "B")


@register_component("led")
class Led(ComponentBase):
    """Single-color LED with a damage/burn-out model carried in its state."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["anode", "cathode"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return DIODE_PIN_ALIASES

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "forward_voltage": ParameterSpec("volt", 2.0, minimum=0.0, aliases=("forwardVoltage", "vf")),
            "on_resistance": ParameterSpec("ohm", 30.0, minimum=0.0, floor=1.0, aliases=("rOn",)),
            "off_resistance": ParameterSpec("ohm", 1e6, minimum=0.0, floor=1.0, aliases=("rOff",)),
            "reference_current": ParameterSpec("ampere", 0.02, minimum=0.0, floor=1e-6, aliases=("iref",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {
            "burned": StateSpec(False),
            "damage_ticks": StateSpec(0, aliases=("ledDamageAccumTicks",)),
        }

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Led", context) -> None:
            context.add(LedStamp(
                component.instance_id, component.instance_id,
                context.node(component, "anode"), context.node(component, "cathode"),
                forward_voltage=component.param("forward_voltage"),
                on_resistance=component.param("on_resistance"),
                off_resistance=component.param("off_resistance"),
                burned=component.state["burned"],
            ))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "Led") -> List[tuple]:
            return [("anode", "cathode")]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "Led", device_state) -> List[ConductiveEdge]:
            if device_state.led_on(component.instance_id):
                return [ConductiveEdge("anode", "cathode", bidirectional=False)]
            return []


@register_component("rgb_led")
class RgbLed(ComponentBase):
    """
    Three LEDs sharing one common pin. Common cathode puts each channel pin on
    the anode side; common anode reverses every channel.
    """

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["R", "G", "B", "COM"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"r": "R", "g": "G", "b": "B", "com": "COM", "common": "COM"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "forward_voltage_red": ParameterSpec("volt", 2.0, minimum=0.0, aliases=("vfR",)),
            "forward_voltage_green": ParameterSpec("volt", 3.0, minimum=0.0, aliases=("vfG",)),
            "forward_voltage_blue": ParameterSpec("volt", 3.0, minimum=0.0, aliases=("vfB",)),
            "on_resistance": ParameterSpec("ohm", 20.0, minimum=0.0, floor=1.0, ceiling=1e4, aliases=("rdyn",)),
            "off_resistance": ParameterSpec("ohm", 1e6, minimum=0.0, floor=1.0),
            "reference_current": ParameterSpec("ampere", 0.02, minimum=0.0, floor=1e-6, aliases=("iref",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"common": StateSpec("cathode", allowed=("cathode", "anode"))}

    def channel_element_id(self, channel: str) -> str:
        return f"{self.instance_id}:{channel}"

    def channel_pins(self, channel: str) -> Tuple[str, str]:
        """(anode pin, cathode pin) of one channel."""
        if self.state["common"] == "cathode":
            return channel, "COM"
        return "COM", channel

    def channel_forward_voltage(self, channel: str) -> float:
        name = {"R": "forward_voltage_red", "G": "forward_voltage_green", "B": "forward_voltage_blue"}[channel]
        return self.param(name)

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "RgbLed", context) -> None:
            for channel in RGB_CHANNELS:
                anode_pin, cathode_pin = component.channel_pins(channel)
                context.add(LedStamp(
                    component.channel_element_id(channel), component.instance_id,
                    context.node(component, anode_pin), context.node(component, cathode_pin),
                    forward_voltage=component.channel_forward_voltage(channel),
                    on_resistance=component.param("on_resistance"),
                    off_resistance=component.param("off_resistance"),
                ))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "RgbLed") -> List[tuple]:
            return [(channel, "COM") for channel in RGB_CHANNELS]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "RgbLed", device_state) -> List[ConductiveEdge]:
            return [
                ConductiveEdge(*component.channel_pins(channel), bidirectional=False)
                for channel in RGB_CHANNELS
                if device_state.led_on(component.channel_element_id(channel))
            ]


@register_component("diode")
class Diode(ComponentBase):
    """Rectifier diode with forward, off and reverse-breakdown regions."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["anode", "cathode"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return DIODE_PIN_ALIASES

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "forward_voltage": ParameterSpec("volt", 0.7, minimum=0.0, aliases=("vf",)),
            "on_resistance": ParameterSpec("ohm", 1.0, minimum=0.0, floor=0.1, aliases=("rOn",)),
            "breakdown_voltage": ParameterSpec("volt", 50.0, minimum=0.0, floor=0.1, aliases=("vbr",)),
            "breakdown_resistance": ParameterSpec("ohm", 10.0, minimum=0.0, floor=0.1, aliases=("rbr",)),
        }

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Diode", context) -> None:
            context.add(DiodeStamp(
                component.instance_id, component.instance_id,
                context.node(component, "anode"), context.node(component, "cathode"),
                forward_voltage=component.param("forward_voltage"),
                on_resistance=component.param("on_resistance"),
                breakdown_voltage=component.param("breakdown_voltage"),
                breakdown_resistance=component.param("breakdown_resistance"),
                off_resistance=R_OFF_DIODE,
            ))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "Diode") -> List[tuple]:
            return [("anode", "cathode")]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "Diode", device_state) -> List[ConductiveEdge]:
            region = device_state.diode_region(component.instance_id)
            if region is DiodeRegion.ON:
                return [ConductiveEdge("anode", "cathode", bidirectional=False)]
            if region is DiodeRegion.BREAKDOWN:
                return [ConductiveEdge("cathode", "anode", bidirectional=False)]
            return []


@register_component("transistor")
class Transistor(ComponentBase):
    """Bipolar junction transistor (NPN or PNP) with a piecewise-linear model."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["B", "C", "E"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"b": "B", "c": "C", "e": "E", "base": "B", "collector": "C", "emitter": "E"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "beta": ParameterSpec("", 100.0, minimum=0.0, floor=1.0),
            "vbe_on": ParameterSpec("volt", 0.7, minimum=0.0, floor=0.4, aliases=("vbeOn",)),
            "vce_sat": ParameterSpec("volt", 0.2, minimum=0.0, floor=0.05, aliases=("vceSat",)),
            "base_resistance": ParameterSpec("ohm", 1000.0, minimum=0.0, floor=10.0, aliases=("rBeOn",)),
            "off_resistance": ParameterSpec("ohm", 1e9, minimum=0.0, floor=1.0, aliases=("rOff",)),
        }

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"polarity": StateSpec("NPN", allowed=("NPN", "PNP"))}

    @property
    def is_npn(self) -> bool:
        return self.state["polarity"] == "NPN"

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "Transistor", context) -> None:
            context.add(TransistorStamp(
                component.instance_id, component.instance_id,
                base=context.node(component, "B"),
                collector=context.node(component, "C"),
                emitter=context.node(component, "E"),
                polarity=component.state["polarity"],
                beta=component.param("beta"),
                vbe_on=component.param("vbe_on"),
                vce_sat=component.param("vce_sat"),
                base_resistance=component.param("base_resistance"),
                off_resistance=component.param("off_resistance"),
            ))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "Transistor") -> List[tuple]:
            return [("B", "E"), ("C", "E")]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "Transistor", device_state) -> List[ConductiveEdge]:
            point = device_state.transistor_point(component.instance_id)
            if point is None:
                return []
            edges = []
            if point.base_on:
                edges.append(ConductiveEdge("B", "E", False) if component.is_npn else ConductiveEdge("E", "B", False))
            if point.region is not TransistorRegion.CUTOFF:
                edges.append(ConductiveEdge("C", "E", False) if component.is_npn else ConductiveEdge("E", "C", False))
            return edges
