"""Reference checks between the models and pipeline documents."""

from content_pipeline.config import EngineConfig
from content_pipeline.pipeline.models import (
    DEFAULT_ROUTE,
    ModelsConfig,
    PipelineConfig,
    PipelineStep,
)
from content_pipeline.pipeline.resolve import template_variables


def cross_validate(models: ModelsConfig, pipeline: PipelineConfig) -> list[str]:
    """Check that every model and next-step reference resolves.

    Only meaningful when both documents parsed without errors. Errors are
    reported step by step in pipeline order; nothing short-circuits.

    Args:
        models: Parsed models configuration.
        pipeline: Parsed pipeline configuration.

    Returns:
        Cross-reference error messages, empty when everything resolves.
    """
    errors: list[str] = []
    for step_id, step in pipeline.items():
        if step.model_config not in models:
            errors.append(
                f'Step "{step_id}" references model config "{step.model_config}", '
                "which does not exist in the models configuration"
            )
        for target in step.routing_aware_output or {}:
            if target == DEFAULT_ROUTE:
                continue
            if target not in pipeline:
                errors.append(
                    f'Step "{step_id}" routes to "{target}": unresolved next-step '
                    "reference (no such step in the pipeline)"
                )
    return errors


def _path_templates(step: PipelineStep) -> list[tuple[str, str]]:
    fields = [
        ("input", step.input),
        ("output", step.output),
        ("archive", step.archive),
        ("template", step.template),
    ]
    fields.extend(("include", pattern) for pattern in step.include or ())
    return [(name, value) for name, value in fields if value]


def collect_warnings(
    models: ModelsConfig,
    pipeline: PipelineConfig,
    settings: EngineConfig | None = None,
) -> list[str]:
    """Return non-fatal advisories about otherwise well-formed documents.

    Args:
        models: Parsed models configuration.
        pipeline: Parsed pipeline configuration.
        settings: Engine settings selecting which advisories apply.

    Returns:
        Warning messages in a stable order: model advisories first, then
        per-step advisories in pipeline order.
    """
    settings = settings or EngineConfig()
    warnings: list[str] = []

    used = {step.model_config for step in pipeline.values()}
    for config_id, config in models.items():
        if settings.warn_unused_models and config_id not in used:
            warnings.append(
                f'Model config "{config_id}" is not used by any pipeline step'
            )
        if settings.warn_empty_api_keys and not config.api_key.strip():
            warnings.append(f'Model config "{config_id}" has no API key yet')
        if config.implementation not in settings.known_implementations:
            warnings.append(
                f'Model config "{config_id}" uses unknown implementation '
                f'"{config.implementation}" (known: '
                f'{", ".join(settings.known_implementations)})'
            )

    known_variables = set(settings.template_variables)
    for step_id, step in pipeline.items():
        routing = step.routing_aware_output or {}
        if settings.warn_self_loops and step_id != DEFAULT_ROUTE and step_id in routing:
            warnings.append(
                f'Step "{step_id}" routes to itself; the executor may revisit it '
                "without limit"
            )
        targets = [key for key in routing if key != DEFAULT_ROUTE]
        if (
            settings.warn_missing_default_route
            and targets
            and DEFAULT_ROUTE not in routing
        ):
            warnings.append(
                f'Step "{step_id}" has no "{DEFAULT_ROUTE}" routing fallback; '
                "an unmatched routing decision will stop processing"
            )
        for field_name, value in _path_templates(step):
            for variable in template_variables(value):
                if variable not in known_variables:
                    warnings.append(
                        f'Step "{step_id}" {field_name} uses unknown template '
                        f'variable "{{{variable}}}"'
                    )
    return warnings
