# src/circuitsim_core/analysis/results.py
"""
Result contracts of the conductivity analysis.

Frozen dataclasses rather than dicts, so a consumer sees exactly which
reachability facts a solve produced and cannot alter them afterwards.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class PathAnalysisResults:
    """
    Reachability facts for one solve.

    Attributes:
        supply_net_id: Net of the first supply's positive pin, if any.
        return_net_id: Ground net, or the supply's negative net when there is no ground.
        has_topology_path: Supply+ reaches the return net over wired edges, ignoring bias.
        has_return_path: Supply+ reaches the return net over edges that conduct
                         in the solved device state.
        feed_net_ids: Nets conductively reachable from supply+ (supply+ included).
    """
    supply_net_id: Optional[str]
    return_net_id: Optional[str]
    has_topology_path: bool
    has_return_path: bool
    feed_net_ids: FrozenSet[str] = field(default_factory=frozenset)
