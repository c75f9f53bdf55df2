"""Pipeline lifecycle callbacks."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)


@dataclass
class PipelineCallbacks:
    """Observer hooks for a run. Every hook is optional.

    A hook that raises is logged and ignored; it never changes the run outcome.
    """

    on_step_start: Callable[[int], None] | None = None
    on_step_complete: Callable[[int, str], None] | None = None
    on_step_fail: Callable[[int, str], None] | None = None
    on_pipeline_complete: Callable[[], None] | None = None
    on_pipeline_fail: Callable[[str], None] | None = None
    # node_id, reason
    on_step_skip: Callable[[int, str], None] | None = None
    # node_id, attempt that failed, max retries
    on_step_retry: Callable[[int, int, int], None] | None = None
    on_pipeline_stop: Callable[[str], None] | None = None

    def emit(self, hook: str, *args) -> None:
        callback = getattr(self, hook)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Pipeline callback %s failed", hook)

    @classmethod
    def combine(cls, *observers: "PipelineCallbacks") -> "PipelineCallbacks":
        """Fan every hook out to several observers, in the given order."""

        def fan_out(hook: str) -> Callable[..., None]:
            def call(*args) -> None:
                for observer in observers:
                    observer.emit(hook, *args)

            return call

        return cls(**{f.name: fan_out(f.name) for f in fields(cls)})
