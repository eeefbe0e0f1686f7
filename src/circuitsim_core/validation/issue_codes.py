# src/circuitsim_core/validation/issue_codes.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ConnectivityIssueCode(Enum):
    """
    Connectivity problems the net builder can report. The member name is the
    issue code; the value is the message template.
    """

    WIRE_PIN_MISSING = "Wire '{wire_id}' endpoint '{endpoint}' references a missing component or pin ('{pin_key}'); the wire is ignored."
    NO_REFERENCE_NODE = "The circuit has no ground symbol or supply negative terminal; there is no 0V reference node."
    OPEN_SWITCH_FLOATING = "Pin '{pin_key}' of '{component_id}' is only reachable through an open contact and is floating."

    @property
    def code(self) -> str:
        return self.name

    def format_message(self, **kwargs) -> str:
        """Fills the template. Unused keyword arguments are ignored."""
        try:
            return self.value.format(**kwargs)
        except KeyError as e:
            logger.error(f"Template of {self.name} needs {e}; got {sorted(kwargs)}.")
            return f"{self.name}: {self.value}"
