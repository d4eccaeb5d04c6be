"""
schemas/__init__.py

JSON Schema definitions and validation utilities for persisted PlanBoard data:
project snapshots, single board items and the project index.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
SNAPSHOT_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "snapshot_schema.json")

# Cached schema
_snapshot_schema: Optional[Dict] = None


def get_snapshot_schema() -> Dict:
    """Load and return the snapshot schema."""
    global _snapshot_schema
    if _snapshot_schema is None:
        with open(SNAPSHOT_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _snapshot_schema = json.load(f)
    return _snapshot_schema


def _schema_for_def(name: str) -> Dict:
    """Build a standalone schema for one ``$defs`` entry."""
    schema = get_snapshot_schema()
    defs = schema.get("$defs", {})
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": defs,
        **defs[name],
    }


def _run(schema: Dict, data: Any) -> Tuple[bool, List[str]]:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))

    if not errors:
        return True, []

    error_messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        error_messages.append(f"{path}: {error.message}")

    return False, error_messages


def validate_snapshot(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a whole project snapshot.

    Args:
        data: The decoded JSON snapshot

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    return _run(get_snapshot_schema(), data)


def validate_item(item: Any) -> Tuple[bool, List[str]]:
    """
    Validate a single board item record.

    Args:
        item: A single item dictionary

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    return _run(_schema_for_def("boardItem"), item)


def validate_index(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate the project index (list of ``{id, name, lastModified}``).

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    return _run(_schema_for_def("projectIndex"), data)


def get_item_defaults(item_type: str) -> Dict[str, Any]:
    """Defaults declared in the schema for the variant fields of *item_type*.

    Args:
        item_type: One of the persisted type tags (``task-list`` etc.).

    Returns:
        ``{field: default}`` for every variant property carrying a default.
    """
    item_def = get_snapshot_schema()["$defs"]["boardItem"]
    result: Dict[str, Any] = {}
    for rule in item_def.get("allOf", []):
        type_prop = rule.get("if", {}).get("properties", {}).get("type", {})
        if type_prop.get("const") != item_type:
            continue
        for name, prop in rule.get("then", {}).get("properties", {}).items():
            if "default" in prop:
                result[name] = prop["default"]
    return result
