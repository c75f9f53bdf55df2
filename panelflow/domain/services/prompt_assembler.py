"""Prompt assembly - injects upstream panel outputs under a byte budget."""

from collections.abc import Iterable, Mapping

from panelflow.domain.entities.pipeline import PipelineEdge, UpstreamOutput
from panelflow.domain.services.condition_evaluator import evaluate_condition

# Agent call input limit, with headroom below the backend's 100KB cap
MAX_INPUT_BYTES = 95_000
# Partial sections smaller than this are dropped instead of truncated
MIN_PARTIAL_BYTES = 200

SECTION_SEPARATOR = "\n\n"
TRUNCATION_MARKER = "\n\n[... truncated: input size limit ...]"


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _truncate_to_bytes(text: str, max_bytes: int) -> str:
    """Cut text to at most max_bytes of UTF-8 without splitting a character."""
    return text.encode("utf-8")[:max(0, max_bytes)].decode("utf-8", errors="ignore")


def render_section(upstream: UpstreamOutput) -> str:
    return (
        f"--- Panel #{upstream.node_id} ({upstream.label}) output ---\n"
        f"{upstream.output}\n"
        "--- End ---"
    )


def build_augmented_prompt(
    prompt: str,
    upstream: list[UpstreamOutput],
    max_bytes: int = MAX_INPUT_BYTES,
) -> str:
    """Prepend upstream outputs to prompt, keeping the result within max_bytes.

    Sections are included greedily in the given (edge) order. A section that
    only partly fits is truncated and marked. If the prompt alone leaves no
    room, upstream content is dropped and the prompt is returned unchanged.
    """
    if not upstream:
        return prompt

    sections = [render_section(u) for u in upstream]
    combined = SECTION_SEPARATOR.join(sections) + SECTION_SEPARATOR + prompt
    if _byte_len(combined) <= max_bytes:
        return combined

    budget = max_bytes - _byte_len(prompt) - len(SECTION_SEPARATOR)
    if budget <= 0:
        return prompt

    marker_bytes = _byte_len(TRUNCATION_MARKER)
    kept: list[str] = []
    used = 0
    for section in sections:
        separator = len(SECTION_SEPARATOR) if kept else 0
        size = _byte_len(section)
        if used + separator + size <= budget:
            kept.append(section)
            used += separator + size
            continue
        remaining = budget - used - separator - marker_bytes
        if remaining > MIN_PARTIAL_BYTES:
            kept.append(_truncate_to_bytes(section, remaining) + TRUNCATION_MARKER)
        break

    if not kept:
        return prompt
    return SECTION_SEPARATOR.join(kept) + SECTION_SEPARATOR + prompt


def collect_upstream_outputs(
    target_node_id: int,
    edges: Iterable[PipelineEdge],
    outputs: Mapping[int, str],
    labels: Mapping[int, str] | None = None,
) -> list[UpstreamOutput]:
    """Non-empty outputs of target's sources whose edge condition passes, in edge order."""
    labels = labels or {}
    result: list[UpstreamOutput] = []
    for edge in edges:
        if edge.target_node_id != target_node_id:
            continue
        output = outputs.get(edge.source_node_id)
        if not output:
            continue
        if not evaluate_condition(edge.condition, output):
            continue
        result.append(
            UpstreamOutput(
                node_id=edge.source_node_id,
                output=output,
                label=labels.get(edge.source_node_id, "Widget"),
            )
        )
    return result
