"""Parse the models and pipeline JSON documents into typed structures.

Parsing never raises. A document that is not JSON, or whose top level is not
an object, yields ``None`` and exactly one error. Otherwise every entry is
checked independently and all failures are returned together; entries that
pass their own checks are kept in the returned mapping.
"""

import json
from typing import Any

from content_pipeline.pipeline.models import (
    ModelConfig,
    ModelsConfig,
    PipelineConfig,
    PipelineStep,
)
from content_pipeline.pipeline.resolve import path_problem
from content_pipeline.schemas import (
    MODEL_CONFIG_SCHEMA,
    PIPELINE_STEP_SCHEMA,
    describe_errors,
    load_schema,
)

# Step fields holding vault-relative path templates (include is checked per entry).
PATH_FIELDS = ("input", "output", "archive", "template")


class _DuplicateKeyRecorder:
    """``object_pairs_hook`` that remembers duplicate keys per decoded object."""

    def __init__(self) -> None:
        self.last_duplicates: list[str] = []

    def __call__(self, pairs: list[tuple[str, Any]]) -> dict[str, Any]:
        seen: dict[str, Any] = {}
        duplicates: list[str] = []
        for key, value in pairs:
            if key in seen and key not in duplicates:
                duplicates.append(key)
            seen[key] = value
        # The top-level object is always decoded last.
        self.last_duplicates = duplicates
        return seen


def decode_document(
    text: str, document: str
) -> tuple[Any | None, list[str], list[str]]:
    """Decode JSON text.

    Args:
        text: Raw document text.
        document: Document label used in messages ("Models", "Pipeline").

    Returns:
        (data, errors, duplicate_top_level_keys). ``data`` is None when the
        text is not valid JSON, in which case ``errors`` holds one message.
    """
    if not isinstance(text, str):
        return None, [f"{document} configuration must be JSON text"], []

    recorder = _DuplicateKeyRecorder()
    try:
        data = json.loads(text, object_pairs_hook=recorder)
    except json.JSONDecodeError as e:
        return (
            None,
            [
                f"{document} configuration is not valid JSON: {e.msg} "
                f"(line {e.lineno}, column {e.colno})"
            ],
            [],
        )
    except RecursionError:
        return None, [f"{document} configuration is nested too deeply"], []
    except ValueError as e:
        return None, [f"{document} configuration is not valid JSON: {e}"], []

    duplicates = recorder.last_duplicates if isinstance(data, dict) else []
    return data, [], duplicates


def _check_identifiers(data: dict[str, Any], entry_label: str) -> list[str]:
    """Return identifier-level errors for a decoded top-level mapping."""
    errors = []
    for key in data:
        if not key.strip():
            errors.append(f"{entry_label} identifiers must be non-empty strings")
    return errors


def _path_errors(data: dict[str, Any]) -> list[str]:
    """Check the path templates of a schema-clean step entry."""
    fields = [(name, data.get(name)) for name in PATH_FIELDS]
    fields.extend(
        (f"include[{index}]", pattern)
        for index, pattern in enumerate(data.get("include") or [])
    )
    errors = []
    for label, value in fields:
        if value is None:
            continue
        problem = path_problem(value)
        if problem:
            errors.append(f"{label} {problem}")
    return errors


def _build_model(config_id: str, data: dict[str, Any]) -> ModelConfig:
    return ModelConfig(
        id=config_id,
        base_url=data["baseUrl"],
        api_key=data.get("apiKey", ""),
        implementation=data["implementation"],
        model=data["model"],
        organization=data.get("organization"),
    )


def _build_step(step_id: str, data: dict[str, Any]) -> PipelineStep:
    include = data.get("include")
    routing = data.get("routingAwareOutput")
    return PipelineStep(
        id=step_id,
        model_config=data["modelConfig"],
        input=data["input"],
        output=data["output"],
        archive=data.get("archive"),
        template=data.get("template"),
        include=tuple(include) if include is not None else None,
        routing_aware_output=dict(routing) if routing is not None else None,
        description=data.get("description"),
    )


def parse_models_data(data: Any) -> tuple[ModelsConfig | None, list[str]]:
    """Validate an already-decoded models document.

    Args:
        data: Decoded JSON value.

    Returns:
        (models, errors). ``models`` is None only when ``data`` is not an
        object; otherwise it holds every entry that passed its own checks.
    """
    return _parse_models(data)


def _parse_models(data: Any) -> tuple[ModelsConfig | None, list[str]]:
    if not isinstance(data, dict):
        return None, [
            "Models configuration must be a JSON object mapping config ids "
            "to model settings"
        ]

    schema = load_schema(MODEL_CONFIG_SCHEMA)
    errors = _check_identifiers(data, "Model config")
    models: ModelsConfig = {}
    for config_id, entry in data.items():
        if not config_id.strip():
            continue
        entry_errors = describe_errors(entry, schema)
        if entry_errors:
            errors.extend(f'Model config "{config_id}": {e}' for e in entry_errors)
            continue
        models[config_id] = _build_model(config_id, entry)
    return models, errors


def parse_models(text: str) -> tuple[ModelsConfig | None, list[str]]:
    """Parse the models configuration document.

    Args:
        text: Raw JSON text.

    Returns:
        (models, errors). ``models`` is None on a syntax or top-level shape
        failure, and ``errors`` then holds exactly one message.
    """
    data, errors, _ = decode_document(text, "Models")
    if errors:
        return None, errors
    return _parse_models(data)


def parse_pipeline_data(data: Any) -> tuple[PipelineConfig | None, list[str]]:
    """Validate an already-decoded pipeline document.

    Used directly when the pipeline arrives embedded in another document,
    such as an import envelope.
    """
    return _parse_pipeline(data)


def _parse_pipeline(data: Any) -> tuple[PipelineConfig | None, list[str]]:
    if not isinstance(data, dict):
        return None, [
            "Pipeline configuration must be a JSON object mapping step ids "
            "to step settings"
        ]

    schema = load_schema(PIPELINE_STEP_SCHEMA)
    errors = _check_identifiers(data, "Step")
    pipeline: PipelineConfig = {}
    for step_id, entry in data.items():
        if not step_id.strip():
            continue
        entry_errors = describe_errors(entry, schema) or _path_errors(entry)
        if entry_errors:
            errors.extend(f'Step "{step_id}": {e}' for e in entry_errors)
            continue
        pipeline[step_id] = _build_step(step_id, entry)
    return pipeline, errors


def parse_pipeline(text: str) -> tuple[PipelineConfig | None, list[str]]:
    """Parse the pipeline configuration document.

    Args:
        text: Raw JSON text.

    Returns:
        (pipeline, errors). ``pipeline`` is None on a syntax or top-level
        shape failure, and ``errors`` then holds exactly one message.
    """
    data, errors, _ = decode_document(text, "Pipeline")
    if errors:
        return None, errors
    return _parse_pipeline(data)
