# src/circuitsim_core/validation/__init__.py
from .issues import ValidationIssue, ValidationIssueLevel
from .issue_codes import ConnectivityIssueCode

__all__ = [
    "ValidationIssue",
    "ValidationIssueLevel",
    "ConnectivityIssueCode",
]
