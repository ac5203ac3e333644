"""JSON Schema documents for configuration entries and their error formatting."""

import json
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_DIR = Path(__file__).parent

MODEL_CONFIG_SCHEMA = "model_config.schema.json"
PIPELINE_STEP_SCHEMA = "pipeline_step.schema.json"
EXPORT_ENVELOPE_SCHEMA = "export_envelope.schema.json"


class SchemaLoadError(Exception):
    """Raised when a bundled schema file cannot be loaded."""

    pass


def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled JSON schema by filename.

    Args:
        name: Schema filename inside the schemas package.

    Returns:
        The parsed schema document.

    Raises:
        SchemaLoadError: If the file is missing, unreadable, or not a valid
            Draft 7 schema.
    """
    schema_path = SCHEMA_DIR / name
    try:
        with schema_path.open(encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in schema file {schema_path}: {e}") from e
    except OSError as e:
        raise SchemaLoadError(f"Error reading schema file {schema_path}: {e}") from e

    try:
        jsonschema.Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        raise SchemaLoadError(f"Invalid schema in {schema_path}: {e.message}") from e
    return schema


def _field_label(path: Any) -> str:
    """Render a jsonschema error path as ``field`` / ``field[2]`` / ``field.key``."""
    label = ""
    for part in path:
        if isinstance(part, int):
            label += f"[{part}]"
        elif label:
            label += f".{part}"
        else:
            label = str(part)
    return label


def _path_key(error: jsonschema.ValidationError) -> list[tuple[int, Any]]:
    """Sort key for error paths that mixes list indexes and mapping keys."""
    return [
        (0, part) if isinstance(part, int) else (1, str(part)) for part in error.path
    ]


def _is_nested(label: str) -> bool:
    return "[" in label or "." in label


def describe_errors(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Validate ``instance`` against ``schema`` and return readable messages.

    All violations are collected. Missing required fields come first (in the
    schema's declared order), followed by field errors sorted by path so the
    output is stable across runs.

    Args:
        instance: Decoded JSON value for one entry.
        schema: A schema loaded with load_schema.

    Returns:
        Error messages, empty when the instance is valid.
    """
    validator = jsonschema.Draft7Validator(schema)
    messages: list[str] = []
    missing_reported: set[str] = set()

    for error in sorted(validator.iter_errors(instance), key=_path_key):
        if error.validator == "required":
            for name in error.validator_value:
                if (
                    isinstance(error.instance, dict)
                    and name not in error.instance
                    and name not in missing_reported
                ):
                    missing_reported.add(name)
                    messages.append(f"missing required field: {name}")
            continue

        custom = error.schema.get("x-messages", {}).get(error.validator)
        label = _field_label(error.path)
        if custom and _is_nested(label):
            messages.append(f"{custom} (at {label})")
        elif custom:
            messages.append(custom)
        elif label:
            messages.append(f"{label}: {error.message}")
        else:
            messages.append(error.message)

    return messages
