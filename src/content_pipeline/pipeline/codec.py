"""Export and import of shareable pipeline configurations.

The export envelope never carries model credentials: pipeline steps only
reference model configs by id. Imports are always re-validated through the
pipeline parser before they are accepted.
"""

import copy
import json
from datetime import datetime, timezone
from typing import Any

from content_pipeline.config import EngineConfig
from content_pipeline.logging import RunLogger
from content_pipeline.pipeline.models import PipelineConfig, pipeline_to_dict
from content_pipeline.pipeline.parser import parse_pipeline_data
from content_pipeline.pipeline.resolve import path_problem
from content_pipeline.schemas import (
    EXPORT_ENVELOPE_SCHEMA,
    describe_errors,
    load_schema,
)


class MalformedImportError(Exception):
    """Raised when an import file lacks the envelope shape or fails validation.

    Attributes:
        errors: Individual problems found, in discovery order.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


def export_pipeline_config(pipeline: PipelineConfig) -> PipelineConfig:
    """Return an independent copy of the pipeline for sharing.

    Steps only hold a model config id, so the copy contains no credentials.
    """
    return copy.deepcopy(pipeline)


def build_export_envelope(
    pipeline: PipelineConfig,
    *,
    description: str | None = None,
    settings: EngineConfig | None = None,
    exported: datetime | None = None,
    logger: RunLogger | None = None,
) -> dict[str, Any]:
    """Wrap a validated pipeline in the export envelope.

    Args:
        pipeline: Validated pipeline configuration.
        description: Envelope description (default from settings).
        settings: Engine settings providing version and default description.
        exported: Export time (default: now, UTC).
        logger: Optional logger.

    Returns:
        JSON-serializable envelope
        ``{"version", "exported", "description", "pipeline"}``.
    """
    settings = settings or EngineConfig()
    exported = exported or datetime.now(timezone.utc)
    envelope = {
        "version": settings.export_version,
        "exported": exported.isoformat(),
        "description": description
        if description is not None
        else settings.export_description,
        "pipeline": pipeline_to_dict(export_pipeline_config(pipeline)),
    }
    if logger:
        logger.log_export(len(pipeline), settings.export_version)
    return envelope


def dump_export(envelope: dict[str, Any]) -> str:
    """Serialize an export envelope as indented JSON text."""
    return json.dumps(envelope, indent=2, ensure_ascii=False) + "\n"


def export_filename(exported: datetime | None = None) -> str:
    """Suggested filename for an export, e.g. content-pipeline-2024-05-01.json."""
    exported = exported or datetime.now(timezone.utc)
    return f"content-pipeline-{exported.date().isoformat()}.json"


def _load_envelope(envelope: dict[str, Any] | str) -> dict[str, Any]:
    """Decode and shape-check an import envelope."""
    if isinstance(envelope, str):
        try:
            envelope = json.loads(envelope)
        except json.JSONDecodeError as e:
            raise MalformedImportError(
                f"Import file is not valid JSON: {e.msg} "
                f"(line {e.lineno}, column {e.colno})"
            ) from e
        except RecursionError as e:
            raise MalformedImportError("Import file is nested too deeply") from e
        except ValueError as e:
            raise MalformedImportError(f"Import file is not valid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise MalformedImportError("Invalid import file - must be a JSON object")
    if "pipeline" not in envelope:
        raise MalformedImportError("Invalid import file - missing pipeline section")

    errors = describe_errors(envelope, load_schema(EXPORT_ENVELOPE_SCHEMA))
    if errors:
        raise MalformedImportError(
            f"Invalid import file - {len(errors)} problem(s) in envelope", errors
        )
    return envelope


def import_pipeline_config(
    envelope: dict[str, Any] | str,
    logger: RunLogger | None = None,
) -> PipelineConfig:
    """Validate an import envelope and return its pipeline.

    Args:
        envelope: Decoded envelope, or its JSON text.
        logger: Optional logger.

    Returns:
        The embedded pipeline configuration.

    Raises:
        MalformedImportError: If the envelope lacks a ``pipeline`` key, has
            badly typed metadata, or the embedded pipeline fails parsing.
    """
    data = _load_envelope(envelope)
    pipeline, errors = parse_pipeline_data(data["pipeline"])
    if pipeline is None or errors:
        raise MalformedImportError(
            f"Imported pipeline failed validation with {len(errors)} error(s)",
            errors,
        )
    if logger:
        logger.log_import(len(pipeline), len(data.get("examplePrompts") or {}))
    return pipeline


def _prompt_path_problem(path: str) -> str | None:
    if not path.strip():
        return "path cannot be empty"
    return path_problem(path)


def read_example_prompts(envelope: dict[str, Any] | str) -> dict[str, str]:
    """Return the optional example prompt files bundled with an import.

    Writing them out is left to the caller.

    Args:
        envelope: Decoded envelope, or its JSON text.

    Returns:
        Relative file path -> text content, in document order; empty when
        the envelope has no ``examplePrompts``.

    Raises:
        MalformedImportError: If the envelope is malformed or a prompt path
            is absolute or escapes the target folder.
    """
    data = _load_envelope(envelope)
    prompts = data.get("examplePrompts") or {}
    errors = []
    for path in prompts:
        problem = _prompt_path_problem(path)
        if problem:
            errors.append(f'Example prompt "{path}": {problem}')
    if errors:
        raise MalformedImportError(
            f"Invalid import file - {len(errors)} unsafe example prompt path(s)",
            errors,
        )
    return dict(prompts)
