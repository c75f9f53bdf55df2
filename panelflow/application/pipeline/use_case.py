"""Pipeline use case - runs snapshots, tracks active runs, forwards auto-chain."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator

from panelflow.application.pipeline.auto_chain import AutoChainTrigger
from panelflow.application.pipeline.callbacks import PipelineCallbacks
from panelflow.application.pipeline.dto import (
    AutoChainResultDTO,
    NodeCompletedRequest,
    NodeCompletedResponse,
    PipelineRunResponse,
    PipelineStreamEvent,
    RunPipelineRequest,
)
from panelflow.application.pipeline.executor import PipelineExecutor
from panelflow.application.pipeline.timeline import ExecutionTimeline
from panelflow.domain.entities.cancellation import CancellationToken
from panelflow.domain.errors import RunAlreadyActiveError

logger = logging.getLogger(__name__)


class PipelineUseCase:
    """Entry point for pipeline runs and node-completion notifications."""

    def __init__(self, executor: PipelineExecutor, auto_chain: AutoChainTrigger) -> None:
        self._executor = executor
        self._auto_chain = auto_chain
        self._active: dict[str, CancellationToken] = {}

    @property
    def active_runs(self) -> list[str]:
        return list(self._active)

    async def execute(
        self,
        request: RunPipelineRequest,
        callbacks: PipelineCallbacks | None = None,
    ) -> PipelineRunResponse:
        """Run the snapshot to a terminal state and return it.

        Raises RunAlreadyActiveError if request.run_id names a run still in flight.
        """
        run_id = request.run_id or str(uuid.uuid4())
        token = self._claim(run_id)
        try:
            return await self._run(request, run_id, token, callbacks)
        finally:
            self._release(run_id, token)

    async def _run(
        self,
        request: RunPipelineRequest,
        run_id: str,
        token: CancellationToken,
        callbacks: PipelineCallbacks | None,
    ) -> PipelineRunResponse:
        timeline = ExecutionTimeline(request.snapshot)
        observers = timeline.callbacks()
        if callbacks is not None:
            observers = PipelineCallbacks.combine(observers, callbacks)

        state = await self._executor.run(
            request.snapshot, callbacks=observers, token=token, run_id=run_id
        )
        return PipelineRunResponse.from_state(state, timeline.entries)

    async def execute_stream(self, request: RunPipelineRequest) -> AsyncIterator[PipelineStreamEvent]:
        """Run the snapshot, yielding step events and a final done event."""
        run_id = request.run_id or str(uuid.uuid4())
        token = self._claim(run_id)
        queue: asyncio.Queue[PipelineStreamEvent] = asyncio.Queue()

        def put(event_type: str, node_id: int | None = None, chunk: str | None = None) -> None:
            queue.put_nowait(PipelineStreamEvent(event_type=event_type, node_id=node_id, chunk=chunk))

        callbacks = PipelineCallbacks(
            on_step_start=lambda node_id: put("step_start", node_id),
            on_step_complete=lambda node_id, output: put("step_complete", node_id, output),
            on_step_fail=lambda node_id, error: put("step_fail", node_id, error),
            on_step_skip=lambda node_id, reason: put("step_skip", node_id, reason),
            on_step_retry=lambda node_id, attempt, max_retries: put(
                "step_retry", node_id, f"{attempt}/{max_retries}"
            ),
            on_pipeline_stop=lambda reason: put("stopped", chunk=reason),
        )

        async def run_pipeline() -> None:
            try:
                response = await self._run(request, run_id, token, callbacks)
                queue.put_nowait(
                    PipelineStreamEvent(
                        event_type="done",
                        payload=response.model_dump(mode="json", by_alias=True),
                    )
                )
            except Exception as e:
                logger.exception("Pipeline stream %s failed", run_id)
                queue.put_nowait(PipelineStreamEvent(event_type="error", chunk=str(e)))

        task = asyncio.create_task(run_pipeline())
        try:
            while True:
                event = await queue.get()
                yield event
                if event.event_type in ("done", "error"):
                    break
        finally:
            self.stop(run_id, "Client disconnected.")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            finally:
                self._release(run_id, token)

    def _claim(self, run_id: str) -> CancellationToken:
        if run_id in self._active:
            raise RunAlreadyActiveError(run_id)
        token = CancellationToken()
        self._active[run_id] = token
        return token

    def _release(self, run_id: str, token: CancellationToken) -> None:
        if self._active.get(run_id) is token:
            del self._active[run_id]

    def stop(self, run_id: str, reason: str = "Pipeline stopped.") -> bool:
        """Request cooperative cancellation. False if the run is not active."""
        token = self._active.get(run_id)
        if token is None:
            return False
        logger.info("Stop requested for pipeline %s", run_id)
        token.cancel(reason)
        return True

    async def notify_completed(self, node_id: int, request: NodeCompletedRequest) -> NodeCompletedResponse:
        """Forward a single-node completion to the auto-chain trigger."""
        results = await self._auto_chain.on_node_completed(
            request.snapshot, node_id, output=request.output
        )
        return NodeCompletedResponse(
            node_id=node_id,
            triggered=[
                AutoChainResultDTO(
                    target_node_id=r.target_node_id,
                    success=r.success,
                    output=r.output,
                    error=r.error,
                )
                for r in results
            ],
        )
