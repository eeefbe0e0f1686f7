# src/circuitsim_core/components/capabilities.py
"""
Defines the capability architecture for CircuitSim Core components.

Analysis stages (Net Builder, Netlist Builder, Conductivity Analyzer) never
switch on component types. They query a component instance for the capability
they need and skip components that do not provide it.

Key elements:
- ComponentCapability: A marker protocol for all capabilities.
- INetlistContributor: emits canonical element stamps into the netlist.
- IContactProvider: reports switch/button contacts and whether each is closed,
  so the Net Builder can union closed contacts.
- ITopologyContributor: reports "physically wired" pin pairs, ignoring bias.
- IConductionContributor: reports pin pairs that can carry current under the
  current discrete device state, optionally directed.
- @provides: A class decorator registering a nested class as a capability
  implementation.
"""

import logging
from typing import (
    List,
    NamedTuple,
    Protocol,
    Type,
    TypeVar,
    TYPE_CHECKING,
    runtime_checkable,
)

if TYPE_CHECKING:
    from .base import ComponentBase
    from ..netlist.builder import NetlistContext
    from ..simulation.device_state import DeviceState

logger = logging.getLogger(__name__)


@runtime_checkable
class ComponentCapability(Protocol):
    """
    A marker protocol for all component capabilities.
    """

    pass


TCapability = TypeVar("TCapability", bound=ComponentCapability)


class Contact(NamedTuple):
    """One switch contact between two canonical pins."""
    name: str
    pin_a: str
    pin_b: str
    closed: bool


class ConductiveEdge(NamedTuple):
    """A pin pair that can carry current. Directed edges run source -> target only."""
    source_pin: str
    target_pin: str
    bidirectional: bool = True


@runtime_checkable
class INetlistContributor(ComponentCapability, Protocol):
    """
    Defines the capability of a component to contribute element stamps.

    The contributor resolves its pins to node indices through the context and
    adds zero or more elements. Pins without a node (floating) resolve to None;
    the contributor still adds its elements so that branch currents exist,
    and the assembler skips elements with a floating terminal.
    """

    def contribute(self, component: "ComponentBase", context: "NetlistContext") -> None:
        ...


@runtime_checkable
class IContactProvider(ComponentCapability, Protocol):
    """Reports the internal contacts of a switch-like component."""

    def get_contacts(self, component: "ComponentBase") -> List[Contact]:
        ...


@runtime_checkable
class ITopologyContributor(ComponentCapability, Protocol):
    """
    Reports the undirected pin pairs this component physically wires together.
    Semiconductor bias is ignored; open contacts are not reported.
    """

    def get_topology_edges(self, component: "ComponentBase") -> List[tuple]:
        ...


@runtime_checkable
class IConductionContributor(ComponentCapability, Protocol):
    """Reports the pin pairs that conduct under the given discrete device state."""

    def get_conductive_edges(
        self,
        component: "ComponentBase",
        device_state: "DeviceState",
    ) -> List[ConductiveEdge]:
        ...


def provides(capability_protocol: Type[ComponentCapability]):
    """
    A class decorator to register a class as an implementation for a capability.

    The decorated class gets an `_implements_capability` attribute, which
    `ComponentBase.declare_capabilities` uses for discovery.

    Args:
        capability_protocol: The capability Protocol (e.g., INetlistContributor)
                             that this class implements.
    """

    def decorator(cls: Type) -> Type:
        if not issubclass(capability_protocol, ComponentCapability):
            raise TypeError(
                f"Decorator argument for @provides must be a ComponentCapability "
                f"Protocol, but got {capability_protocol}."
            )
        cls._implements_capability = capability_protocol
        logger.debug(
            f"Class '{cls.__name__}' registered as providing capability '{capability_protocol.__name__}'."
        )
        return cls

    return decorator
