# src/circuitsim_core/components/switches.py
"""
Switches and push buttons. Each one is described by its list of contacts;
every contact is stamped as an independent two-terminal switch element, and
closed contacts are also unioned by the Net Builder.
"""

import logging
from abc import abstractmethod
from typing import Dict, List

from ..constants import R_OFF_SWITCH, R_ON_SWITCH
from ..netlist.elements import ResistorStamp
from .base import ComponentBase, register_component
from .capabilities import (
    Contact, ConductiveEdge, IContactProvider, INetlistContributor,
    IConductionContributor, ITopologyContributor, provides
)
from .fields import ParameterSpec, StateSpec

logger = logging.getLogger(__name__)

POSITIONS = ("A", "B")


class SwitchBase(ComponentBase):
    """Common behavior of every contact-based component."""

    @abstractmethod
    def contacts(self) -> List[Contact]:
        """The contacts of this switch in its current discrete state."""

    @property
    def on_resistance(self) -> float:
        return R_ON_SWITCH

    def contact_element_id(self, contact: Contact) -> str:
        if len(self.contacts()) == 1:
            return self.instance_id
        return f"{self.instance_id}:{contact.name}"

    @provides(IContactProvider)
    class ContactProvider:
        def get_contacts(self, component: "SwitchBase") -> List[Contact]:
            return component.contacts()

    @provides(INetlistContributor)
    class NetlistContributor:
        def contribute(self, component: "SwitchBase", context) -> None:
            for contact in component.contacts():
                context.add(ResistorStamp(
                    component.contact_element_id(contact),
                    component.instance_id,
                    context.node(component, contact.pin_a),
                    context.node(component, contact.pin_b),
                    component.on_resistance if contact.closed else R_OFF_SWITCH,
                ))

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "SwitchBase") -> List[tuple]:
            return [(c.pin_a, c.pin_b) for c in component.contacts() if c.closed]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "SwitchBase", device_state) -> List[ConductiveEdge]:
            return [ConductiveEdge(c.pin_a, c.pin_b) for c in component.contacts() if c.closed]


@register_component("switch")
class SpstSwitch(SwitchBase):

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["a", "b"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"P1": "a", "P2": "b", "pin1": "a", "pin2": "b"}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"on": StateSpec(False, aliases=("closed",))}

    def contacts(self) -> List[Contact]:
        return [Contact("a-b", "a", "b", self.state["on"])]


@register_component("switch_spdt")
class SpdtSwitch(SwitchBase):
    """Single pole, double throw. P2 is the common; position A joins P1, B joins P3."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P1", "P2", "P3"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"COM": "P2", "p1": "P1", "p2": "P2", "p3": "P3"}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"position": StateSpec("A", allowed=POSITIONS)}

    def contacts(self) -> List[Contact]:
        position = self.state["position"]
        return [
            Contact("COM-A", "P2", "P1", position == "A"),
            Contact("COM-B", "P2", "P3", position == "B"),
        ]


@register_component("switch_dpst")
class DpstSwitch(SwitchBase):
    """Double pole, single throw: two independent contacts actuated together."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P1", "P2", "P3", "P4"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"p1": "P1", "p2": "P2", "p3": "P3", "p4": "P4"}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"on": StateSpec(False, aliases=("closed",))}

    def contacts(self) -> List[Contact]:
        on = self.state["on"]
        return [Contact("P1-P2", "P1", "P2", on), Contact("P3-P4", "P3", "P4", on)]


@register_component("switch_dpdt")
class DpdtSwitch(SwitchBase):
    """Double pole, double throw. Commons are P2 and P5."""

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P1", "P2", "P3", "P4", "P5", "P6"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"COM1": "P2", "COM2": "P5", **{f"p{i}": f"P{i}" for i in range(1, 7)}}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"position": StateSpec("A", allowed=POSITIONS)}

    def contacts(self) -> List[Contact]:
        a = self.state["position"] == "A"
        return [
            Contact("COM1-A1", "P2", "P1", a),
            Contact("COM1-B1", "P2", "P3", not a),
            Contact("COM2-A2", "P5", "P4", a),
            Contact("COM2-B2", "P5", "P6", not a),
        ]


@register_component("push_button")
class PushButton(SwitchBase):
    """Momentary, normally-open push button: closed only while pressed."""
    normally_open = True

    @classmethod
    def declare_ports(cls) -> List[str]:
        return ["P1", "P2"]

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        return {"p1": "P1", "p2": "P2", "a": "P1", "b": "P2"}

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {"on_resistance": ParameterSpec("ohm", 0.01, minimum=0.0, floor=1e-6, aliases=("rOnOhms",))}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        return {"pressed": StateSpec(False)}

    @property
    def on_resistance(self) -> float:
        return self.param("on_resistance")

    def contacts(self) -> List[Contact]:
        closed = self.state["pressed"] == self.normally_open
        return [Contact("P1-P2", "P1", "P2", closed)]


@register_component("push_button_nc")
class NormallyClosedPushButton(PushButton):
    """Momentary, normally-closed push button: opens while pressed."""
    normally_open = False
