"""Graph ordering - Kahn's topological sort over pipeline edges."""

from collections import deque
from collections.abc import Iterable

from panelflow.domain.entities.pipeline import PipelineEdge


def involved_node_ids(edges: Iterable[PipelineEdge]) -> list[int]:
    """Node ids referenced by at least one edge, in first-appearance order."""
    seen: dict[int, None] = {}
    for edge in edges:
        seen.setdefault(edge.source_node_id, None)
        seen.setdefault(edge.target_node_id, None)
    return list(seen)


def topological_sort(
    edges: Iterable[PipelineEdge],
    node_ids: list[int],
) -> list[int] | None:
    """Order node_ids so every edge's source precedes its target.

    Zero in-degree nodes are dequeued in discovery order. Edges touching
    nodes outside node_ids are ignored. Returns None when a cycle exists;
    no partial order is ever returned.
    """
    in_degree: dict[int, int] = {node_id: 0 for node_id in node_ids}
    adjacency: dict[int, list[int]] = {node_id: [] for node_id in node_ids}

    for edge in edges:
        if edge.source_node_id not in in_degree or edge.target_node_id not in in_degree:
            continue
        adjacency[edge.source_node_id].append(edge.target_node_id)
        in_degree[edge.target_node_id] += 1

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    ordered: list[int] = []
    while queue:
        node_id = queue.popleft()
        ordered.append(node_id)
        for successor in adjacency[node_id]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    if len(ordered) != len(in_degree):
        return None
    return ordered


def has_cycle(edges: Iterable[PipelineEdge], node_ids: list[int]) -> bool:
    """Check whether the edges among node_ids contain a cycle."""
    return topological_sort(edges, node_ids) is None
