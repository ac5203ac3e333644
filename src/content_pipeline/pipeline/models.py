"""Typed structures for the models and pipeline configuration documents."""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ROUTE = "default"


@dataclass(frozen=True)
class ModelConfig:
    """One named provider/model profile from the models configuration.

    Attributes:
        id: Identifier (key in the models mapping).
        base_url: HTTP(S) endpoint of the provider API.
        api_key: Secret credential; may be empty while the user is editing.
        implementation: Tag selecting the model-calling strategy
            (e.g. "whisper", "chatgpt").
        model: Provider-specific model name (e.g. "whisper-1").
        organization: Optional organization id sent with requests.
    """

    id: str
    base_url: str
    api_key: str = field(default="", repr=False)
    implementation: str = ""
    model: str = ""
    organization: str | None = None


@dataclass(frozen=True)
class PipelineStep:
    """One workflow node from the pipeline configuration.

    Attributes:
        id: Identifier (key in the pipeline mapping).
        model_config: Reference to a ModelConfig id.
        input: Input path template.
        output: Output path template.
        archive: Archive path template (optional).
        template: Output template path (optional).
        include: Auxiliary file paths or globs, in order (optional).
        routing_aware_output: Next-step id (or "default") to routing prompt
            (optional). Keys other than "default" are outgoing graph edges.
        description: Free text (optional).
    """

    id: str
    model_config: str
    input: str
    output: str
    archive: str | None = None
    template: str | None = None
    include: tuple[str, ...] | None = None
    routing_aware_output: dict[str, str] | None = None
    description: str | None = None


ModelsConfig = dict[str, ModelConfig]
PipelineConfig = dict[str, PipelineStep]


@dataclass(frozen=True)
class ResolvedStep:
    """A pipeline step merged with its referenced model configuration.

    Path templates have ``{stepId}`` substituted; every other placeholder is
    left for per-file substitution at processing time.
    """

    step_id: str
    model_config_id: str
    base_url: str
    api_key: str = field(repr=False)
    implementation: str
    model: str
    input: str
    output: str
    archive: str | None = None
    template: str | None = None
    include: tuple[str, ...] = ()
    routing_aware_output: dict[str, str] = field(default_factory=dict)
    description: str | None = None
    organization: str | None = None


@dataclass(frozen=True)
class ConfigValidationResult:
    """Aggregate outcome of one validation pass over both documents.

    Error lists keep discovery order and are never deduplicated.
    """

    is_valid: bool
    models_errors: list[str] = field(default_factory=list)
    pipeline_errors: list[str] = field(default_factory=list)
    cross_ref_errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return (
            len(self.models_errors)
            + len(self.pipeline_errors)
            + len(self.cross_ref_errors)
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the result with the camelCase keys used by the settings UI."""
        return {
            "isValid": self.is_valid,
            "modelsErrors": list(self.models_errors),
            "pipelineErrors": list(self.pipeline_errors),
            "crossRefErrors": list(self.cross_ref_errors),
            "warnings": list(self.warnings),
            "entryPoints": list(self.entry_points),
        }


def model_to_dict(config: ModelConfig, redact: bool = False) -> dict[str, Any]:
    """Serialize a ModelConfig to its JSON document shape."""
    data: dict[str, Any] = {
        "baseUrl": config.base_url,
        "apiKey": "***" if redact and config.api_key else config.api_key,
        "implementation": config.implementation,
        "model": config.model,
    }
    if config.organization is not None:
        data["organization"] = config.organization
    return data


def step_to_dict(step: PipelineStep) -> dict[str, Any]:
    """Serialize a PipelineStep to its JSON document shape.

    Optional fields are omitted when absent so that parsing the result
    yields an equal step.
    """
    data: dict[str, Any] = {
        "modelConfig": step.model_config,
        "input": step.input,
        "output": step.output,
    }
    if step.archive is not None:
        data["archive"] = step.archive
    if step.template is not None:
        data["template"] = step.template
    if step.include is not None:
        data["include"] = list(step.include)
    if step.routing_aware_output is not None:
        data["routingAwareOutput"] = dict(step.routing_aware_output)
    if step.description is not None:
        data["description"] = step.description
    return data


def pipeline_to_dict(pipeline: PipelineConfig) -> dict[str, dict[str, Any]]:
    """Serialize a PipelineConfig, preserving step order."""
    return {step_id: step_to_dict(step) for step_id, step in pipeline.items()}
