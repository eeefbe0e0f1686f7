import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import cerberus
import yaml

from ..data_structures import PIN_KEY_SEPARATOR
from .raw_data import ParsedComponentData, ParsedSnapshot, ParsedWireData
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

# Ids end up inside canonical `componentId:pinId` keys and net ids ("n#..."),
# so neither the key separator nor '#' may appear in them.
FORBIDDEN_ID_CHARS = {PIN_KEY_SEPARATOR, "#"}
ID_REGEX = r"^[^:#\s]+$"


class EnhancedValidator(cerberus.Validator):
    """Custom Cerberus validator enforcing pin-key-safe identifiers and unique ids."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['pin_key_safe'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_pin_key_safe(self, constraint: bool, field: str, value: Any):
        """
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint:
            return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by pin_key_safe.")
            return
        if not re.match(ID_REGEX, value):
            bad = sorted(c for c in set(value) if c in FORBIDDEN_ID_CHARS or c.isspace())
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers may not contain whitespace, "
                f"':' or '#'. This identifier contains the following forbidden character(s): {bad}",
            )

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = []
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is not None:
                if item_key in seen_keys:
                    duplicates.append(item_key)
                else:
                    seen_keys.add(item_key)

        if duplicates:
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {sorted(set(duplicates))}")


class SnapshotParser:
    """
    Validates an editor snapshot (a mapping, or a YAML/JSON file holding one)
    and turns it into a `ParsedSnapshot`. Only structure is checked here;
    component types, parameter values and wire endpoints are resolved later.
    """
    _id_rule = {"type": "string", "required": True, "empty": False, "pin_key_safe": True}
    _pin_rule = {"type": "string", "required": True, "empty": False, "pin_key_safe": True}
    _value_rule = {"type": ["string", "number"]}

    _endpoint_schema = {
        "type": "dict",
        "required": True,
        "schema": {"component": _id_rule, "pin": _pin_rule},
    }

    _component_schema = {
        "id": _id_rule,
        "type": {"type": "string", "required": True, "empty": False},
        "variant": {"type": "string", "required": False, "nullable": True},
        "label": {"type": "string", "required": False, "nullable": True},
        "parameters": {"type": "dict", "required": False, "keysrules": {"type": "string"}, "valuesrules": _value_rule},
        "state": {"type": "dict", "required": False, "keysrules": {"type": "string"}},
        "position": {
            "type": "list", "required": False, "nullable": True,
            "items": [{"type": "number"}, {"type": "number"}],
        },
    }

    _wire_schema = {
        "id": {"type": "string", "required": False, "empty": False, "pin_key_safe": True},
        "from": _endpoint_schema,
        "to": _endpoint_schema,
    }

    _schema = {
        "name": {"type": "string", "required": False, "empty": False},
        "components": {
            "type": "list", "required": True, "unique_elements_by_key": "id",
            "schema": {"type": "dict", "schema": _component_schema},
        },
        "wires": {
            "type": "list", "required": False, "default": [], "unique_elements_by_key": "id",
            "schema": {"type": "dict", "schema": _wire_schema},
        },
        "analysis": {
            "type": "dict", "required": False, "schema": {
                "mode": {"type": "string", "allowed": ["dc", "transient"], "default": "dc"},
                "dt": _value_rule,
                "duration": _value_rule,
            },
        },
        "solver": {"type": "dict", "required": False, "keysrules": {"type": "string"}, "valuesrules": _value_rule},
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.info("SnapshotParser initialized with strict structural validation rules.")

    def parse_file(self, path: Union[str, Path]) -> ParsedSnapshot:
        """Loads a YAML or JSON snapshot file and parses it."""
        resolved_path = Path(path).resolve()
        logger.info(f"Parsing circuit snapshot file: {resolved_path}")
        return self.parse_dict(self._load_yaml(resolved_path), source_path=resolved_path)

    def parse_dict(self, data: Mapping[str, Any], source_path: Optional[Path] = None) -> ParsedSnapshot:
        """Validates an in-memory snapshot (e.g. the editor's JSON after `json.loads`)."""
        if not isinstance(data, Mapping):
            raise ParsingError(details="The snapshot root must be a mapping.", file_path=source_path)
        if not self._validator.validate(dict(data)):
            raise SchemaValidationError(self._validator.errors, source_path)
        validated = self._validator.document

        components = [
            ParsedComponentData(
                instance_id=raw["id"],
                component_type=raw["type"],
                variant=raw.get("variant"),
                raw_parameters_dict=dict(raw.get("parameters") or {}),
                raw_state_dict=dict(raw.get("state") or {}),
                position=tuple(raw["position"]) if raw.get("position") else None,
                source_path=source_path,
            )
            for raw in validated["components"]
        ]
        wires = [
            ParsedWireData(
                wire_id=raw.get("id") or f"w{index}",
                start_component=raw["from"]["component"],
                start_pin=raw["from"]["pin"],
                end_component=raw["to"]["component"],
                end_pin=raw["to"]["pin"],
            )
            for index, raw in enumerate(validated.get("wires", []))
        ]
        default_name = source_path.stem if source_path is not None else "snapshot"
        snapshot = ParsedSnapshot(
            name=validated.get("name", default_name),
            components=components,
            wires=wires,
            source_path=source_path,
            raw_analysis=validated.get("analysis"),
            raw_solver=dict(validated.get("solver") or {}),
        )
        logger.debug(f"Parsed snapshot '{snapshot.name}': {len(components)} component(s), {len(wires)} wire(s).")
        return snapshot

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads a snapshot file. JSON is read by the same loader, being a subset of YAML."""
        if not source.is_file():
            raise ParsingError(details=f"Snapshot file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML/JSON syntax: {e}", file_path=source) from e
        if content is None:
            raise ParsingError(details="The file is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the snapshot file must be a mapping.", file_path=source)
        return content
