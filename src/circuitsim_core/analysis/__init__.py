# src/circuitsim_core/analysis/__init__.py
"""
Graph reachability over nets: wired (topology) paths and bias-aware
(conductive) paths, plus their result contract.
"""
from .results import PathAnalysisResults
from .conductivity import ConductivityAnalyzer

__all__ = [
    "PathAnalysisResults",
    "ConductivityAnalyzer",
]
