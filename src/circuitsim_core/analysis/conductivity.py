# src/circuitsim_core/analysis/conductivity.py

"""
Net-level reachability for loop detection and UI diagnostics.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Set, Tuple

import networkx as nx

from ..components.base import ComponentBase
from ..components.capabilities import IConductionContributor, ITopologyContributor
from ..data_structures import CircuitSnapshot
from ..netlist.nets import NetGraph
from .results import PathAnalysisResults

if TYPE_CHECKING:
    from ..simulation.device_state import DeviceState

logger = logging.getLogger(__name__)

SUPPLY_TYPE = "dc_supply"


class ConductivityAnalyzer:
    """
    Answers two breadth-first reachability questions over the nets of one
    snapshot.

    The topology graph is undirected and holds every physically wired pin pair
    (closed contacts only; semiconductor bias ignored). The conductive graph is
    directed: LEDs, diodes and transistor junctions contribute an edge only in
    the direction they conduct under a given `DeviceState`.
    """

    def __init__(self, snapshot: CircuitSnapshot, net_graph: NetGraph):
        self.snapshot = snapshot
        self.net_graph = net_graph
        self._topology_graph: Optional[nx.Graph] = None
        logger.debug(f"ConductivityAnalyzer initialized for '{snapshot.name}'.")

    def net_of(self, component: ComponentBase, pin: str) -> Optional[str]:
        return self.net_graph.net_of_pin.get(component.pin_key(pin))

    def _empty_graph(self, graph_type):
        graph = graph_type()
        graph.add_nodes_from(net.net_id for net in self.net_graph.nets)
        return graph

    def topology_graph(self) -> nx.Graph:
        """Wired adjacency between nets. Built once per analyzer."""
        if self._topology_graph is not None:
            return self._topology_graph

        graph = self._empty_graph(nx.Graph)
        for component in self.snapshot.components.values():
            contributor = component.get_capability(ITopologyContributor)
            if not contributor:
                continue
            for pin_a, pin_b in contributor.get_topology_edges(component):
                net_a, net_b = self.net_of(component, pin_a), self.net_of(component, pin_b)
                if net_a is not None and net_b is not None and net_a != net_b:
                    graph.add_edge(net_a, net_b)
        self._topology_graph = graph
        return graph

    def conductive_graph(self, device_state: "DeviceState", exclude: Iterable[str] = ()) -> nx.DiGraph:
        """Bias-aware adjacency for `device_state`, leaving out the components in `exclude`."""
        excluded = set(exclude)
        graph = self._empty_graph(nx.DiGraph)
        for component in self.snapshot.components.values():
            if component.instance_id in excluded:
                continue
            contributor = component.get_capability(IConductionContributor)
            if not contributor:
                continue
            for edge in contributor.get_conductive_edges(component, device_state):
                source = self.net_of(component, edge.source_pin)
                target = self.net_of(component, edge.target_pin)
                if source is None or target is None or source == target:
                    continue
                graph.add_edge(source, target)
                if edge.bidirectional:
                    graph.add_edge(target, source)
        return graph

    def has_topology_path(self, start: Optional[str], end: Optional[str]) -> bool:
        if start is None or end is None:
            return False
        graph = self.topology_graph()
        if start not in graph or end not in graph:
            return False
        return nx.has_path(graph, start, end)

    def has_conductive_path(
        self,
        start: Optional[str],
        end: Optional[str],
        device_state: "DeviceState",
        exclude: Iterable[str] = (),
    ) -> bool:
        if start is None or end is None:
            return False
        graph = self.conductive_graph(device_state, exclude)
        if start not in graph or end not in graph:
            return False
        return nx.has_path(graph, start, end)

    def reachable_nets(self, start: Optional[str], device_state: "DeviceState") -> Set[str]:
        """Nets conductively reachable from `start`, `start` included."""
        if start is None:
            return set()
        graph = self.conductive_graph(device_state)
        if start not in graph:
            return set()
        return {start} | nx.descendants(graph, start)

    def supply_nets(self) -> Tuple[Optional[str], Optional[str]]:
        """(positive net, negative net) of the first supply in snapshot order."""
        for component in self.snapshot.components_of_type(SUPPLY_TYPE):
            return self.net_of(component, "pos"), self.net_of(component, "neg")
        return None, None

    def return_net(self) -> Optional[str]:
        if self.net_graph.ground_net_id is not None:
            return self.net_graph.ground_net_id
        return self.supply_nets()[1]

    def analyze(self, device_state: "DeviceState") -> PathAnalysisResults:
        supply_net, _ = self.supply_nets()
        return_net = self.return_net()
        conductive = self.conductive_graph(device_state)

        has_return = (
            supply_net is not None and return_net is not None
            and nx.has_path(conductive, supply_net, return_net)
        )
        feed = frozenset({supply_net} | nx.descendants(conductive, supply_net)) if supply_net else frozenset()
        results = PathAnalysisResults(
            supply_net_id=supply_net,
            return_net_id=return_net,
            has_topology_path=self.has_topology_path(supply_net, return_net),
            has_return_path=has_return,
            feed_net_ids=feed,
        )
        logger.debug(
            f"Path analysis for '{self.snapshot.name}': topology={results.has_topology_path}, "
            f"return={results.has_return_path}, feed nets={len(feed)}."
        )
        return results
