"""Configuration parsing, validation, step graph, resolution and export."""

from content_pipeline.pipeline.codec import (
    MalformedImportError,
    build_export_envelope,
    dump_export,
    export_filename,
    export_pipeline_config,
    import_pipeline_config,
    read_example_prompts,
)
from content_pipeline.pipeline.crossref import collect_warnings, cross_validate
from content_pipeline.pipeline.graph import (
    find_entry_points,
    reachable_from,
    successors,
    unreachable_steps,
)
from content_pipeline.pipeline.models import (
    DEFAULT_ROUTE,
    ConfigValidationResult,
    ModelConfig,
    ModelsConfig,
    PipelineConfig,
    PipelineStep,
    ResolvedStep,
)
from content_pipeline.pipeline.parser import (
    parse_models,
    parse_models_data,
    parse_pipeline,
    parse_pipeline_data,
)
from content_pipeline.pipeline.resolve import (
    EntryPointFolder,
    StepReferenceError,
    derive_base_path,
    entry_point_folders,
    expand_template,
    get_client_class,
    path_problem,
    resolve_step,
    template_variables,
)
from content_pipeline.pipeline.validator import (
    InvalidConfigurationError,
    format_validation_errors,
    load_valid_configuration,
    status_line,
    validate,
    validation_summary,
)

__all__ = [
    "MalformedImportError",
    "build_export_envelope",
    "dump_export",
    "export_filename",
    "export_pipeline_config",
    "import_pipeline_config",
    "read_example_prompts",
    "collect_warnings",
    "cross_validate",
    "find_entry_points",
    "reachable_from",
    "successors",
    "unreachable_steps",
    "DEFAULT_ROUTE",
    "ConfigValidationResult",
    "ModelConfig",
    "ModelsConfig",
    "PipelineConfig",
    "PipelineStep",
    "ResolvedStep",
    "parse_models",
    "parse_models_data",
    "parse_pipeline",
    "parse_pipeline_data",
    "EntryPointFolder",
    "StepReferenceError",
    "derive_base_path",
    "entry_point_folders",
    "expand_template",
    "get_client_class",
    "path_problem",
    "resolve_step",
    "template_variables",
    "InvalidConfigurationError",
    "format_validation_errors",
    "load_valid_configuration",
    "status_line",
    "validate",
    "validation_summary",
]
