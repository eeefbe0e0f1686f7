# src/circuitsim_core/netlist/builder.py
"""
The Netlist Builder: maps nets to matrix node indices and collects the
canonical element stamps contributed by each component.

Node numbering: the ground net is node 0. Every other net with at least two
pins gets the next index in net-id order. Single-pin nets are floating and get
no node. A component whose pins all sit in floating nets is dropped entirely so
that disconnected hardware never perturbs the matrix.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type, TypeVar

from ..components.base import ComponentBase
from ..components.capabilities import INetlistContributor
from ..data_structures import CircuitSnapshot
from .elements import ElementStamp, VoltageSourceStamp
from .nets import NetGraph

logger = logging.getLogger(__name__)

TElement = TypeVar("TElement", bound=ElementStamp)

GROUND_NODE = 0


@dataclass(frozen=True)
class Netlist:
    """Node assignment plus the element stamps for one snapshot."""
    node_count: int
    net_nodes: Dict[str, int]
    ground_net_id: Optional[str]
    elements: Tuple[ElementStamp, ...]
    warnings: Tuple[str, ...]
    dropped_component_ids: Tuple[str, ...] = ()

    def node_of_net(self, net_id: Optional[str]) -> Optional[int]:
        if net_id is None:
            return None
        return self.net_nodes.get(net_id)

    def elements_of_type(self, element_type: Type[TElement]) -> List[TElement]:
        return [e for e in self.elements if isinstance(e, element_type)]

    def get_element(self, element_id: str) -> Optional[ElementStamp]:
        for element in self.elements:
            if element.element_id == element_id:
                return element
        return None

    @property
    def net_of_node(self) -> Dict[int, str]:
        return {node: net_id for net_id, node in self.net_nodes.items()}

    @property
    def has_ac_sources(self) -> bool:
        return any(s.waveform is not None for s in self.elements_of_type(VoltageSourceStamp))


class NetlistContext:
    """
    The interface a component's `INetlistContributor` sees while contributing.
    Resolves pins to nodes, allocates internal nodes and records elements and
    warnings.
    """

    def __init__(self, net_graph: NetGraph, net_nodes: Dict[str, int], node_count: int):
        self._net_graph = net_graph
        self._net_nodes = net_nodes
        self._node_count = node_count
        self.elements: List[ElementStamp] = []
        self.warnings: List[str] = []

    @property
    def node_count(self) -> int:
        return self._node_count

    @property
    def ground_node(self) -> int:
        return GROUND_NODE

    def node(self, component: ComponentBase, pin: str) -> Optional[int]:
        net_id = self._net_graph.net_of_pin.get(component.pin_key(pin))
        return self._net_nodes.get(net_id) if net_id is not None else None

    def allocate_node(self) -> int:
        """Reserves an internal node (e.g. behind a supply's series resistance)."""
        index = self._node_count
        self._node_count += 1
        return index

    def add(self, element: ElementStamp) -> None:
        self.elements.append(element)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class NetlistBuilder:
    """Builds the `Netlist` for one snapshot and its `NetGraph`."""

    def __init__(self, snapshot: CircuitSnapshot, net_graph: NetGraph):
        self.snapshot = snapshot
        self.net_graph = net_graph

    def build(self) -> Netlist:
        warnings: List[str] = []
        reference_net_id = self._choose_reference_net(warnings)
        net_nodes = self._assign_node_indices(reference_net_id)
        context = NetlistContext(self.net_graph, net_nodes, node_count=len(net_nodes) if net_nodes else 1)

        dropped: List[str] = []
        for component in self.snapshot.components.values():
            contributor = component.get_capability(INetlistContributor)
            if not contributor:
                continue
            if self._is_disconnected(component, net_nodes):
                dropped.append(component.instance_id)
                continue
            contributor.contribute(component, context)

        if dropped:
            logger.debug(f"Dropped disconnected component(s): {dropped}")
        netlist = Netlist(
            node_count=context.node_count,
            net_nodes=net_nodes,
            ground_net_id=reference_net_id,
            elements=tuple(context.elements),
            warnings=tuple(warnings + context.warnings),
            dropped_component_ids=tuple(dropped),
        )
        logger.debug(
            f"Netlist for '{self.snapshot.name}': {netlist.node_count} node(s), "
            f"{len(netlist.elements)} element(s)."
        )
        return netlist

    def _choose_reference_net(self, warnings: List[str]) -> Optional[str]:
        if self.net_graph.ground_net_id is not None:
            return self.net_graph.ground_net_id
        for net in self.net_graph.nets:
            if net.size > 1:
                warnings.append(f"No explicit ground; using net {net.net_id} as reference")
                return net.net_id
        return None

    def _assign_node_indices(self, reference_net_id: Optional[str]) -> Dict[str, int]:
        net_nodes: Dict[str, int] = {}
        if reference_net_id is not None:
            net_nodes[reference_net_id] = GROUND_NODE
        next_index = 1
        for net in self.net_graph.nets:
            if net.net_id == reference_net_id or net.size < 2:
                continue
            net_nodes[net.net_id] = next_index
            next_index += 1
        return net_nodes

    def _is_disconnected(self, component: ComponentBase, net_nodes: Dict[str, int]) -> bool:
        return all(
            self.net_graph.net_of_pin.get(component.pin_key(pin)) not in net_nodes
            for pin in type(component).declare_ports()
        )
