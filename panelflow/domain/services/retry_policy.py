"""Retry policies for agent calls, expressed as tenacity configurations."""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_incrementing,
)

from panelflow.domain.entities.pipeline import PipelineEdge
from panelflow.domain.errors import AgentCallError, RateLimitError

DEFAULT_MIN_RETRY_DELAY_MS = 1000

SleepFn = Callable[[float], Awaitable[None]]
RetryHook = Callable[[int, BaseException | None], None]


def _build_retrying(
    *,
    stop,
    wait,
    retry,
    sleep: SleepFn | None,
    on_retry: RetryHook | None,
) -> AsyncRetrying:
    kwargs: dict = {"stop": stop, "wait": wait, "retry": retry, "reraise": True}
    if sleep is not None:
        kwargs["sleep"] = sleep
    if on_retry is not None:

        def before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            on_retry(state.attempt_number, exc)

        kwargs["before_sleep"] = before_sleep
    return AsyncRetrying(**kwargs)


@dataclass(frozen=True)
class NodeRetryPolicy:
    """Per-node retry: fixed delay, derived from the node's incoming edges."""

    max_retries: int = 0
    delay_ms: int = DEFAULT_MIN_RETRY_DELAY_MS

    @classmethod
    def from_edges(
        cls,
        incoming: Iterable[PipelineEdge],
        min_delay_ms: int = DEFAULT_MIN_RETRY_DELAY_MS,
    ) -> "NodeRetryPolicy":
        """Max declared maxRetries (default 0); max declared delay floored at min_delay_ms."""
        edges = list(incoming)
        max_retries = max((e.max_retries or 0 for e in edges), default=0)
        delay_ms = max(
            [min_delay_ms, *(e.retry_delay_ms or min_delay_ms for e in edges)]
        )
        return cls(max_retries=max(0, max_retries), delay_ms=delay_ms)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000

    def retrying(
        self,
        sleep: SleepFn | None = None,
        on_retry: RetryHook | None = None,
    ) -> AsyncRetrying:
        """Retry any AgentCallError up to max_retries times."""
        return _build_retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(AgentCallError),
            sleep=sleep,
            on_retry=on_retry,
        )


@dataclass(frozen=True)
class RateLimitRetryPolicy:
    """Linear backoff on rate limits only: min(step * n, max) seconds."""

    max_retries: int = 5
    step_seconds: float = 15.0
    max_wait_seconds: float = 90.0

    def wait_for(self, retry_number: int) -> float:
        return min(self.step_seconds * retry_number, self.max_wait_seconds)

    def retrying(
        self,
        sleep: SleepFn | None = None,
        on_retry: RetryHook | None = None,
    ) -> AsyncRetrying:
        return _build_retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_incrementing(
                start=self.step_seconds,
                increment=self.step_seconds,
                max=self.max_wait_seconds,
            ),
            retry=retry_if_exception_type(RateLimitError),
            sleep=sleep,
            on_retry=on_retry,
        )
