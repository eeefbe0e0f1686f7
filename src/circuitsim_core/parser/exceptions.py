# src/circuitsim_core/parser/exceptions.py
"""
Diagnosable exceptions of the snapshot parsing stage.

`ParsingError` covers file-level problems (missing file, unreadable file,
invalid YAML/JSON syntax); `SchemaValidationError` covers documents that load
but do not have the structure of a circuit snapshot. Both derive from
`DiagnosableError`, so the `CircuitBuilder` can catch them with everything
else it reports.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """Common base of all snapshot parsing errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the circuit snapshot.",
            context={}
        )


def _source_label(file_path: Optional[Path]) -> str:
    return str(file_path) if file_path is not None else "<in-memory snapshot>"


@dataclass()
class ParsingError(BaseParsingError):
    """A snapshot file that is missing, unreadable or not valid YAML/JSON."""
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        return f"Parsing error in '{_source_label(self.file_path)}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Snapshot Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable, and contains a single YAML or JSON mapping.",
            context={'source_file': self.file_path}
        )


@dataclass()
class SchemaValidationError(BaseParsingError):
    """
    The document loaded but does not conform to the snapshot schema (missing
    keys, invalid identifiers, duplicate ids, wrong value types).
    """
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def _error_lines(self):
        return [f"  - Field '{field}': {messages}" for field, messages in sorted(self.errors.items())]

    def __str__(self):
        return (
            f"Snapshot schema validation failed for '{_source_label(self.file_path)}':\n"
            + "\n".join(self._error_lines())
        )

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the snapshot does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="Snapshot Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Component and wire ids must be unique and may not contain ':' or '#'; every wire needs 'from' and 'to' endpoints with a component and a pin.",
            context={'source_file': self.file_path}
        )
