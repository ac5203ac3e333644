"""Validation of both configuration documents in one pass.

Each pass parses fresh text and recomputes everything; nothing is cached
between calls, so the functions here are safe to call from several callers
at once.
"""

from content_pipeline.config import EngineConfig
from content_pipeline.logging import RunLogger
from content_pipeline.pipeline.crossref import collect_warnings, cross_validate
from content_pipeline.pipeline.graph import find_entry_points, unreachable_steps
from content_pipeline.pipeline.models import (
    ConfigValidationResult,
    ModelsConfig,
    PipelineConfig,
)
from content_pipeline.pipeline.parser import (
    decode_document,
    parse_models,
    parse_pipeline,
)


class InvalidConfigurationError(Exception):
    """Raised when parsed structures are requested for invalid documents.

    Attributes:
        result: The failed validation result.
    """

    def __init__(self, result: ConfigValidationResult) -> None:
        super().__init__(format_validation_errors(result))
        self.result = result


def _duplicate_warnings(text: str, document: str, entry_label: str) -> list[str]:
    """Warn about ids defined twice; JSON keeps only the last definition."""
    _, _, duplicates = decode_document(text, document)
    return [
        f'{entry_label} "{key}" is defined more than once; '
        "only the last definition is used"
        for key in duplicates
    ]


def _graph_warnings(pipeline: PipelineConfig, entry_points: list[str]) -> list[str]:
    if not pipeline:
        return ["Pipeline configuration has no steps"]
    warnings = []
    if not entry_points:
        warnings.append(
            "Pipeline has no entry point: every step is a routing target of "
            "another step"
        )
    unreachable = unreachable_steps(pipeline)
    if unreachable:
        warnings.append(
            "Steps not reachable from any entry point: " + ", ".join(unreachable)
        )
    return warnings


def _run_validation(
    models_text: str,
    pipeline_text: str,
    settings: EngineConfig | None,
) -> tuple[ConfigValidationResult, ModelsConfig | None, PipelineConfig | None]:
    models, models_errors = parse_models(models_text)
    pipeline, pipeline_errors = parse_pipeline(pipeline_text)

    cross_ref_errors: list[str] = []
    warnings: list[str] = []
    entry_points: list[str] = []

    schema_clean = (
        models is not None
        and pipeline is not None
        and not models_errors
        and not pipeline_errors
    )
    if schema_clean:
        cross_ref_errors = cross_validate(models, pipeline)
        warnings = _duplicate_warnings(models_text, "Models", "Model config")
        warnings.extend(_duplicate_warnings(pipeline_text, "Pipeline", "Step"))
        warnings.extend(collect_warnings(models, pipeline, settings))
        if not cross_ref_errors:
            entry_points = find_entry_points(pipeline)
            warnings.extend(_graph_warnings(pipeline, entry_points))

    result = ConfigValidationResult(
        is_valid=schema_clean and not cross_ref_errors,
        models_errors=models_errors,
        pipeline_errors=pipeline_errors,
        cross_ref_errors=cross_ref_errors,
        warnings=warnings,
        entry_points=entry_points,
    )
    return result, models, pipeline


def validate(
    models_text: str,
    pipeline_text: str,
    settings: EngineConfig | None = None,
    logger: RunLogger | None = None,
) -> ConfigValidationResult:
    """Validate both documents and derive the entry points.

    Never raises for any input text. Cross-reference checks run only when
    both documents are schema-clean; entry points are computed only when
    cross-references resolve.

    Args:
        models_text: Models configuration JSON text.
        pipeline_text: Pipeline configuration JSON text.
        settings: Engine settings (warning switches, known implementations).
        logger: Optional logger.

    Returns:
        ConfigValidationResult for this pass.
    """
    result, _, _ = _run_validation(models_text, pipeline_text, settings)
    if logger:
        logger.log_document_errors("models", result.models_errors)
        logger.log_document_errors("pipeline", result.pipeline_errors)
        logger.log_document_errors("cross-reference", result.cross_ref_errors)
        for warning in result.warnings:
            logger.warning(warning)
        logger.log_validation_pass(
            result.is_valid,
            validation_summary(result)["errorsByType"],
            len(result.warnings),
            result.entry_points,
        )
    return result


def load_valid_configuration(
    models_text: str,
    pipeline_text: str,
    settings: EngineConfig | None = None,
) -> tuple[ModelsConfig, PipelineConfig, ConfigValidationResult]:
    """Validate both documents and return their parsed structures.

    Raises:
        InvalidConfigurationError: If validation fails.
    """
    result, models, pipeline = _run_validation(models_text, pipeline_text, settings)
    if not result.is_valid or models is None or pipeline is None:
        raise InvalidConfigurationError(result)
    return models, pipeline, result


def validation_summary(result: ConfigValidationResult) -> dict:
    """Return counts for display: total errors, errors per category, entry points."""
    return {
        "isValid": result.is_valid,
        "totalErrors": result.error_count,
        "errorsByType": {
            "models": len(result.models_errors),
            "pipeline": len(result.pipeline_errors),
            "crossRef": len(result.cross_ref_errors),
        },
        "warningCount": len(result.warnings),
        "entryPointCount": len(result.entry_points),
    }


def status_line(result: ConfigValidationResult) -> str:
    """One-line status, e.g. "Models: 2 error(s) | Cross-reference: 1 error(s)"."""
    if result.is_valid:
        if result.entry_points:
            return f"Valid | Entry points: {', '.join(result.entry_points)}"
        return "Valid"

    parts = []
    if result.models_errors:
        parts.append(f"Models: {len(result.models_errors)} error(s)")
    if result.pipeline_errors:
        parts.append(f"Pipeline: {len(result.pipeline_errors)} error(s)")
    if result.cross_ref_errors:
        parts.append(f"Cross-reference: {len(result.cross_ref_errors)} error(s)")
    return " | ".join(parts)


def format_validation_errors(result: ConfigValidationResult) -> str:
    """Multi-section plain-text report of every error and warning."""
    sections = []
    if result.models_errors:
        sections.append(
            "Models Configuration Errors:\n  " + "\n  ".join(result.models_errors)
        )
    if result.pipeline_errors:
        sections.append(
            "Pipeline Configuration Errors:\n  " + "\n  ".join(result.pipeline_errors)
        )
    if result.cross_ref_errors:
        sections.append(
            "Cross-Reference Errors:\n  " + "\n  ".join(result.cross_ref_errors)
        )
    if result.warnings:
        sections.append("Warnings:\n  " + "\n  ".join(result.warnings))
    return "\n\n".join(sections) if sections else "No errors found"
