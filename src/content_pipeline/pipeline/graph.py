"""Step graph derived from routing declarations.

Edges are never stored; they are read from each step's routingAwareOutput
keys on every call. Cycles (including self-loops) are accepted: routing is
decided per document at run time, so a cyclic graph is a valid topology and
nothing here guarantees that execution terminates.
"""

from collections import deque
from collections.abc import Iterable

from content_pipeline.pipeline.models import DEFAULT_ROUTE, PipelineConfig, PipelineStep


def successors(step: PipelineStep) -> list[str]:
    """Return the step's routing targets in declaration order, without "default"."""
    return [
        target
        for target in (step.routing_aware_output or {})
        if target != DEFAULT_ROUTE
    ]


def referenced_steps(pipeline: PipelineConfig) -> set[str]:
    """Return every step id that appears as a routing target of any step."""
    referenced: set[str] = set()
    for step in pipeline.values():
        referenced.update(successors(step))
    return referenced


def find_entry_points(pipeline: PipelineConfig) -> list[str]:
    """Return the steps no other step routes to.

    The pipeline must already be free of unresolved routing references.
    A pipeline may have any number of entry points, including none (every
    step sits on a cycle) and none for an empty pipeline.

    Args:
        pipeline: Cross-reference-clean pipeline configuration.

    Returns:
        Entry point step ids in pipeline order.
    """
    referenced = referenced_steps(pipeline)
    return [step_id for step_id in pipeline if step_id not in referenced]


def reachable_from(pipeline: PipelineConfig, start_ids: Iterable[str]) -> list[str]:
    """Breadth-first walk over routing edges.

    Args:
        pipeline: Cross-reference-clean pipeline configuration.
        start_ids: Steps to start from (included in the result).

    Returns:
        Reachable step ids in visit order.
    """
    visited: list[str] = []
    seen: set[str] = set()
    queue = deque(step_id for step_id in start_ids if step_id in pipeline)
    while queue:
        step_id = queue.popleft()
        if step_id in seen:
            continue
        seen.add(step_id)
        visited.append(step_id)
        for target in successors(pipeline[step_id]):
            if target in pipeline and target not in seen:
                queue.append(target)
    return visited


def unreachable_steps(pipeline: PipelineConfig) -> list[str]:
    """Return steps that no entry point can reach, in pipeline order.

    These are steps on a cycle that nothing outside the cycle routes into,
    so no new file can ever arrive at them.
    """
    reachable = set(reachable_from(pipeline, find_entry_points(pipeline)))
    return [step_id for step_id in pipeline if step_id not in reachable]
