"""Execution timeline - append-only log of node lifecycle events for display."""

import itertools
import time
from collections.abc import Callable

from panelflow.application.pipeline.callbacks import PipelineCallbacks
from panelflow.domain.entities.pipeline import PipelineSnapshot
from panelflow.domain.entities.timeline import TimelineEntry


class ExecutionTimeline:
    """Records running/completed/failed/skipped/retrying entries with durations."""

    def __init__(
        self,
        snapshot: PipelineSnapshot | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._titles = {p.node_id: p.title for p in snapshot.panels} if snapshot else {}
        self._clock = clock
        self._entries: list[TimelineEntry] = []
        self._started: dict[int, int] = {}
        self._skipped: set[int] = set()
        self._seq = itertools.count(1)

    @property
    def entries(self) -> list[TimelineEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._started.clear()
        self._skipped.clear()

    def callbacks(self) -> PipelineCallbacks:
        return PipelineCallbacks(
            on_step_start=self._on_start,
            on_step_complete=self._on_complete,
            on_step_fail=self._on_fail,
            on_step_skip=self._on_skip,
            on_step_retry=self._on_retry,
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _add(
        self,
        node_id: int,
        status: str,
        message: str | None = None,
        duration_ms: int | None = None,
    ) -> None:
        now = self._now_ms()
        self._entries.append(
            TimelineEntry(
                id=f"tl-{node_id}-{now}-{next(self._seq)}",
                node_id=node_id,
                node_title=self._titles.get(node_id) or f"Panel #{node_id}",
                status=status,
                message=message,
                timestamp=now,
                duration_ms=duration_ms,
            )
        )

    def _elapsed(self, node_id: int) -> int | None:
        started = self._started.pop(node_id, None)
        return None if started is None else self._now_ms() - started

    def _on_start(self, node_id: int) -> None:
        self._started[node_id] = self._now_ms()
        self._add(node_id, "running")

    def _on_complete(self, node_id: int, output: str) -> None:
        # Skipped nodes also report completion with empty output
        if node_id in self._skipped:
            return
        self._add(node_id, "completed", duration_ms=self._elapsed(node_id))

    def _on_fail(self, node_id: int, error: str) -> None:
        self._add(node_id, "failed", message=error, duration_ms=self._elapsed(node_id))

    def _on_skip(self, node_id: int, reason: str) -> None:
        self._skipped.add(node_id)
        self._add(node_id, "skipped", message=reason, duration_ms=self._elapsed(node_id))

    def _on_retry(self, node_id: int, attempt: int, max_retries: int) -> None:
        self._add(node_id, "retrying", message=f"Retry {attempt}/{max_retries}")
