# src/circuitsim_core/validation/issues.py
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .issue_codes import ConnectivityIssueCode

logger = logging.getLogger(__name__)


class ValidationIssueLevel(Enum):
    """Severity of a connectivity issue. Neither level stops a solve."""
    WARNING = "WARNING"
    INFO = "INFO"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single structured problem found while building nets or the netlist.
    Issues never abort a solve; they are aggregated into the result's warnings.
    """
    level: ValidationIssueLevel
    code: str
    message: str
    component_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_code(
        cls,
        issue_code: ConnectivityIssueCode,
        component_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        level: ValidationIssueLevel = ValidationIssueLevel.WARNING,
        **template_args: Any,
    ) -> "ValidationIssue":
        """Builds an issue whose message is `issue_code`'s template filled with `template_args`."""
        issue = cls(
            level=level,
            code=issue_code.code,
            message=issue_code.format_message(component_id=component_id, **template_args),
            component_id=component_id,
            details=dict(details or {}),
        )
        logger.debug(f"Connectivity issue: {issue}")
        return issue

    def __str__(self) -> str:
        text = f"[{self.level} - {self.code}] {self.message}"
        if self.component_id:
            text += f" (component '{self.component_id}')"
        if self.details:
            text += " {" + ", ".join(f"{k}={v}" for k, v in sorted(self.details.items())) + "}"
        return text
