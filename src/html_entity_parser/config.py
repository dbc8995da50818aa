"""Entity definitions and parser settings loaded from JSON documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

from jsonschema import Draft202012Validator

from html_entity_parser.entities import EntityList
from html_entity_parser.exceptions import ConfigurationError
from html_entity_parser.logger import get_module_logger
from html_entity_parser.settings import ParserSettings

logger = get_module_logger("config")

MATCH_OPS = ["match", "match_first", "match_last", "select"]
FILTER_OPS = [
    "not_",
    "classes",
    "attribute",
    "id",
    "with_text",
    "with_text_match_case",
    "with_exact_text",
    "with_exact_text_match_case",
    "followed_by",
    "followed_immediately_by",
    "preceded_by",
    "preceded_immediately_by",
    "followed_by_text",
    "preceded_by_text",
    "child_of",
    "contained_by",
    "parent_of",
    "containing",
    "under_header",
    "under",
    "up_to",
    "up_to_header",
    "down_to",
    "down_to_footer",
]
CONTENT_OPS = [
    "get_text",
    "get_own_text",
    "get_preceding_text",
    "get_following_text",
    "get_attribute",
    "get_heading_text",
    "get_text_above",
    "get_text_above_matching",
]
POST_OPS = ["download"]

FIELD_ROLES = ["normal", "persistent", "silent", "silent_persistent"]
_ADDERS = {
    "normal": "add_field",
    "persistent": "add_persistent_field",
    "silent": "add_silent_field",
    "silent_persistent": "add_silent_persistent_field",
}


def _ops_schema(ops: list[str]) -> dict[str, Any]:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "op": {"enum": ops},
                "args": {"type": "array", "items": {"type": ["string", "integer"]}},
                "kwargs": {"type": "object"},
            },
            "required": ["op"],
            "additionalProperties": False,
        },
    }


CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "html-entity-parser configuration",
    "type": "object",
    "$defs": {
        "field": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "role": {"enum": FIELD_ROLES + ["constant"]},
                "value": {},
                "path": _ops_schema(MATCH_OPS + FILTER_OPS + CONTENT_OPS + POST_OPS),
            },
            "required": ["name"],
            "additionalProperties": False,
            "if": {"properties": {"role": {"const": "constant"}}, "required": ["role"]},
            "then": {"required": ["value"]},
            "else": {"required": ["path"]},
        },
        "fields": {"type": "array", "items": {"$ref": "#/$defs/field"}},
        "triggers": {"type": "array", "items": _ops_schema(MATCH_OPS + FILTER_OPS)},
    },
    "properties": {
        "entities": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "fields": {"$ref": "#/$defs/fields"},
                    "triggers": {"$ref": "#/$defs/triggers"},
                    "paths": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "path": _ops_schema(MATCH_OPS + FILTER_OPS),
                                "fields": {"$ref": "#/$defs/fields"},
                                "triggers": {"$ref": "#/$defs/triggers"},
                            },
                            "required": ["path"],
                            "additionalProperties": False,
                        },
                    },
                    "groups": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "start": {"type": "string", "minLength": 1},
                                "start_filters": _ops_schema(FILTER_OPS),
                                "end": {"type": "string", "minLength": 1},
                                "end_on_closing": {"type": "boolean"},
                                "end_filters": _ops_schema(FILTER_OPS),
                                "fields": {"$ref": "#/$defs/fields"},
                                "triggers": {"$ref": "#/$defs/triggers"},
                            },
                            "required": ["start"],
                            "additionalProperties": False,
                        },
                    },
                },
                "additionalProperties": False,
            },
        },
        "settings": {
            "type": "object",
            "properties": {
                "null_value": {},
                "empty_value": {},
                "trim_values": {"type": "boolean"},
                "thread_count": {"type": "integer", "minimum": 1},
                "entities_to_read": {"type": "array", "items": {"type": "string"}},
                "entities_to_skip": {"type": "array", "items": {"type": "string"}},
                "selected_fields": {
                    "type": "object",
                    "additionalProperties": {"type": "array", "items": {"type": "string"}},
                },
                "excluded_fields": {
                    "type": "object",
                    "additionalProperties": {"type": "array", "items": {"type": "string"}},
                },
                "column_reordering_enabled": {"type": "boolean"},
                "download_directory": {"type": "string"},
                "request_timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
    },
    "required": ["entities"],
    "additionalProperties": False,
}

ConfigSource = Union[str, Path, dict]


def load_config(source: ConfigSource) -> dict[str, Any]:
    """Read a configuration from a dict, a JSON file path or a JSON string, and validate it."""
    if isinstance(source, dict):
        data = source
    else:
        text = str(source)
        path = Path(source) if isinstance(source, Path) or not text.lstrip().startswith("{") else None
        try:
            data = json.loads(path.read_text(encoding="utf-8") if path is not None else text)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration: {e}") from e
    validate_config(data)
    return data


def validate_config(data: Any) -> None:
    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        messages = [f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}" for e in errors]
        raise ConfigurationError("Invalid configuration", {"errors": messages})


def _apply(target: Any, ops: list[dict[str, Any]], where: str) -> Any:
    for op in ops:
        try:
            target = getattr(target, op["op"])(*op.get("args", []), **op.get("kwargs", {}))
        except ConfigurationError:
            raise
        except (AttributeError, TypeError) as e:
            raise ConfigurationError(f"{where}: cannot apply '{op['op']}': {e}") from e
    return target


def _add_fields(adder: Any, fields: list[dict[str, Any]], where: str) -> None:
    for definition in fields:
        role = definition.get("role", "normal")
        if role == "constant":
            if not hasattr(adder, "add_constant_field"):
                raise ConfigurationError(f"{where}: constant field '{definition['name']}' must be declared on the entity")
            adder.add_constant_field(definition["name"], definition["value"])
            continue
        field_path = getattr(adder, _ADDERS[role])(definition["name"])
        _apply(field_path, definition["path"], f"{where} field '{definition['name']}'")


def _add_triggers(adder: Any, triggers: list[list[dict[str, Any]]], where: str) -> None:
    for ops in triggers:
        _apply(adder.add_record_trigger(), ops, f"{where} trigger")


def build_entity_list(data: dict[str, Any]) -> EntityList:
    """Turn a validated configuration into an :class:`EntityList`."""
    entity_list = EntityList()
    for name, definition in data["entities"].items():
        entity = entity_list.configure_entity(name)
        _add_fields(entity, definition.get("fields", []), name)
        _add_triggers(entity, definition.get("triggers", []), name)

        for index, path_def in enumerate(definition.get("paths", [])):
            where = f"{name} path {index}"
            path = _apply(entity.new_path(), path_def["path"], where)
            _add_fields(path, path_def.get("fields", []), where)
            _add_triggers(path, path_def.get("triggers", []), where)

        for index, group_def in enumerate(definition.get("groups", [])):
            where = f"{name} group {index}"
            group = _apply(entity.new_group().start_at(group_def["start"]), group_def.get("start_filters", []), where)
            if "end" in group_def:
                if group_def.get("end_on_closing", False):
                    group = group.end_at_closing(group_def["end"])
                else:
                    group = group.end_at(group_def["end"])
                group = _apply(group, group_def.get("end_filters", []), where)
            _add_fields(group, group_def.get("fields", []), where)
            _add_triggers(group, group_def.get("triggers", []), where)

        # fail on broken paths now rather than at parse time
        entity.build()
    logger.debug("Loaded %d entities from configuration", len(entity_list))
    return entity_list


def build_settings(data: dict[str, Any]) -> ParserSettings:
    options = dict(data.get("settings", {}))
    if "download_directory" in options:
        options["download_directory"] = Path(options["download_directory"])
    return ParserSettings(**options)


def load_entity_list(source: ConfigSource) -> EntityList:
    return build_entity_list(load_config(source))
