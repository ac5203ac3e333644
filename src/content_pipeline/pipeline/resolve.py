"""Step resolution: pipeline step + referenced model config -> ResolvedStep.

Also holds the path template helpers shared with validation and folder setup.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass

from content_pipeline.pipeline.graph import find_entry_points
from content_pipeline.pipeline.models import ModelsConfig, PipelineConfig, ResolvedStep

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")
DRIVE_PATTERN = re.compile(r"^[A-Za-z]:[\\/]")

# Implementation tag -> client class used by the pipeline executor.
IMPLEMENTATION_CLIENTS: dict[str, str] = {
    "whisper": "WhisperClient",
    "chatgpt": "ChatGPTClient",
    "claude": "ClaudeClient",
}


class StepReferenceError(Exception):
    """Raised when resolving a step whose id or model reference does not exist.

    Callers validate before resolving, so this signals a caller defect.
    """

    pass


@dataclass(frozen=True)
class EntryPointFolder:
    """Input folder an entry point step reads from.

    Attributes:
        step_id: Entry point step id.
        base_path: Input template with placeholders stripped.
    """

    step_id: str
    base_path: str


def template_variables(template: str) -> list[str]:
    """Return placeholder names in order of appearance (duplicates kept)."""
    return PLACEHOLDER_PATTERN.findall(template)


def expand_template(template: str, variables: Mapping[str, str]) -> str:
    """Substitute the given ``{name}`` placeholders; leave the rest intact.

    Args:
        template: Path template, e.g. "inbox/{stepId}/{filename}.md".
        variables: Known values, e.g. {"stepId": "transcribe"}.

    Returns:
        The template with known placeholders replaced.
    """
    return PLACEHOLDER_PATTERN.sub(
        lambda match: variables.get(match.group(1), match.group(0)), template
    )


def path_problem(path: str) -> str | None:
    """Return why a vault-relative path template is unsafe, or None.

    Rejects null characters, absolute paths (``/``, ``\\`` or a drive
    letter), empty or unbalanced ``{}`` placeholders, and ``..`` segments,
    including ones that only appear once placeholders are removed.
    """
    if "\0" in path:
        return "path cannot contain a null character"
    candidate = path.strip()
    if candidate.startswith(("/", "\\")) or DRIVE_PATTERN.match(candidate):
        return "path must be relative to the vault root"
    if "{}" in candidate:
        return "path contains an empty variable {}"
    without_variables = PLACEHOLDER_PATTERN.sub("", candidate)
    if "{" in without_variables or "}" in without_variables:
        return "path has unmatched or nested braces"
    for form in (candidate, without_variables):
        if ".." in form.replace("\\", "/").split("/"):
            return "path cannot contain parent directory references (..)"
    return None


def derive_base_path(input_template: str) -> str:
    """Derive the directory to create or check for an input template.

    Every ``{variable}`` placeholder is removed, backslashes become forward
    slashes, repeated separators collapse, and leading and trailing
    separators are dropped so the result always stays relative. Unresolved
    placeholders are stripped rather than rejected.

    Example:
        "inbox/audio/{category}/" -> "inbox/audio"
        "{category}/audio/" -> "audio"
    """
    stripped = PLACEHOLDER_PATTERN.sub("", input_template.strip())
    stripped = stripped.replace("\\", "/")
    stripped = re.sub(r"/{2,}", "/", stripped)
    return stripped.strip("/")


def entry_point_folders(pipeline: PipelineConfig) -> list[EntryPointFolder]:
    """Return the input folder of every entry point, in pipeline order.

    The pipeline must be cross-reference clean.
    """
    return [
        EntryPointFolder(
            step_id=step_id, base_path=derive_base_path(pipeline[step_id].input)
        )
        for step_id in find_entry_points(pipeline)
    ]


def get_client_class(implementation: str) -> str | None:
    """Return the executor client class for an implementation tag, or None."""
    return IMPLEMENTATION_CLIENTS.get(implementation)


def resolve_step(
    models: ModelsConfig, pipeline: PipelineConfig, step_id: str
) -> ResolvedStep:
    """Merge a pipeline step with its model config.

    Only ``{stepId}`` is substituted in the path templates; per-file
    variables ({filename}, {timestamp}, {date}, {category}) are left for
    the executor.

    Args:
        models: Validated models configuration.
        pipeline: Validated pipeline configuration.
        step_id: Step to resolve.

    Returns:
        ResolvedStep ready for the pipeline executor.

    Raises:
        StepReferenceError: If the step does not exist, or its model config
            reference does not resolve.
    """
    step = pipeline.get(step_id)
    if step is None:
        available = ", ".join(pipeline) or "(none)"
        raise StepReferenceError(
            f"Pipeline step not found: {step_id} (available steps: {available})"
        )

    model = models.get(step.model_config)
    if model is None:
        available = ", ".join(models) or "(none)"
        raise StepReferenceError(
            f"Model config not found: {step.model_config} for step {step_id} "
            f"(available model configs: {available})"
        )

    variables = {"stepId": step_id}

    def expand(template: str | None) -> str | None:
        return expand_template(template, variables) if template is not None else None

    return ResolvedStep(
        step_id=step_id,
        model_config_id=model.id,
        base_url=model.base_url,
        api_key=model.api_key,
        implementation=model.implementation,
        model=model.model,
        organization=model.organization,
        input=expand_template(step.input, variables),
        output=expand_template(step.output, variables),
        archive=expand(step.archive),
        template=expand(step.template),
        include=tuple(expand_template(p, variables) for p in step.include or ()),
        routing_aware_output=dict(step.routing_aware_output or {}),
        description=step.description,
    )
