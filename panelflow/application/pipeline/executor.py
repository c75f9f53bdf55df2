"""Pipeline executor - walks the topological order and runs each panel.

Per node: passive panels contribute their static output, conditional nodes
whose incoming conditions all fail are skipped, active panels get an
augmented prompt and are called with the node retry policy. The first
terminal failure fails the run; cancellation stops it between calls.
"""

import asyncio
import logging
import uuid

from panelflow.application.pipeline.callbacks import PipelineCallbacks
from panelflow.application.pipeline.output_store import PanelOutputStore
from panelflow.application.shared.agent_calls import call_agent, start_orchestration
from panelflow.application.summarizer import MapReduceSummarizer, SummarizeRequest
from panelflow.domain.entities.cancellation import CancellationToken
from panelflow.domain.entities.pipeline import (
    NO_ORCHESTRATION,
    PanelSpec,
    PanelType,
    PipelineSnapshot,
    RunState,
    RunStatus,
    UpstreamOutput,
)
from panelflow.domain.errors import (
    AgentCallError,
    AgentNotConfiguredError,
    CycleDetectedError,
    NodeExecutionError,
    PipelineStoppedError,
    SummarizationError,
)
from panelflow.domain.ports.agent import AgentInvokerPort
from panelflow.domain.services.condition_evaluator import evaluate_condition
from panelflow.domain.services.folder_output import parse_folder_output
from panelflow.domain.services.graph_orderer import involved_node_ids, topological_sort
from panelflow.domain.services.prompt_assembler import (
    MAX_INPUT_BYTES,
    build_augmented_prompt,
    collect_upstream_outputs,
)
from panelflow.domain.services.retry_policy import (
    DEFAULT_MIN_RETRY_DELAY_MS,
    NodeRetryPolicy,
    SleepFn,
)

logger = logging.getLogger(__name__)

SKIP_REASON = "No incoming condition satisfied"


class PipelineExecutor:
    """Runs a pipeline snapshot once, strictly sequentially."""

    def __init__(
        self,
        invoker: AgentInvokerPort,
        outputs: PanelOutputStore | None = None,
        summarizer: MapReduceSummarizer | None = None,
        sleep: SleepFn = asyncio.sleep,
        min_retry_delay_ms: int = DEFAULT_MIN_RETRY_DELAY_MS,
        max_input_bytes: int = MAX_INPUT_BYTES,
    ) -> None:
        self._invoker = invoker
        self._outputs = outputs if outputs is not None else PanelOutputStore()
        self._summarizer = summarizer
        self._sleep = sleep
        self._min_retry_delay_ms = min_retry_delay_ms
        self._max_input_bytes = max_input_bytes

    @property
    def outputs(self) -> PanelOutputStore:
        return self._outputs

    async def run(
        self,
        snapshot: PipelineSnapshot,
        callbacks: PipelineCallbacks | None = None,
        token: CancellationToken | None = None,
        run_id: str | None = None,
    ) -> RunState:
        """Execute every node referenced by an edge, in dependency order.

        Never raises for run outcomes: the returned state carries
        COMPLETED, FAILED (with error) or STOPPED.
        """
        callbacks = callbacks or PipelineCallbacks()
        token = token or CancellationToken()
        state = RunState(run_id=run_id or str(uuid.uuid4()), status=RunStatus.RUNNING)

        order = topological_sort(snapshot.edges, involved_node_ids(snapshot.edges))
        if order is None:
            return self._fail(state, callbacks, str(CycleDetectedError()))
        state.order = order
        logger.info("Pipeline %s started: %d nodes", state.run_id, len(order))

        try:
            for node_id in order:
                self._check_cancelled(token)
                state.current_node = node_id
                callbacks.emit("on_step_start", node_id)
                await self._run_node(snapshot, snapshot.panel(node_id), state, callbacks, token)
        except PipelineStoppedError as e:
            return self._stop(state, callbacks, str(e))
        except AgentNotConfiguredError as e:
            callbacks.emit("on_step_fail", e.node_id, "No agent configured")
            return self._fail(state, callbacks, str(e))
        except NodeExecutionError as e:
            callbacks.emit("on_step_fail", e.node_id, e.message)
            return self._fail(state, callbacks, str(e))

        state.status = RunStatus.COMPLETED
        state.current_node = None
        logger.info("Pipeline %s completed", state.run_id)
        callbacks.emit("on_pipeline_complete")
        return state

    async def _run_node(
        self,
        snapshot: PipelineSnapshot,
        panel: PanelSpec,
        state: RunState,
        callbacks: PipelineCallbacks,
        token: CancellationToken,
    ) -> None:
        node_id = panel.node_id
        if not panel.is_active:
            if not snapshot.has_panel(node_id):
                logger.warning("Panel #%d is not declared, treating as empty", node_id)
            self._record(state, node_id, panel.static_output)
            callbacks.emit("on_step_complete", node_id, panel.static_output)
            return

        if not panel.agent_id:
            raise AgentNotConfiguredError(node_id)

        incoming = snapshot.incoming_edges(node_id)
        # Unconditional edges always pass, so they keep a gated node alive
        if any(e.has_condition for e in incoming) and not any(
            evaluate_condition(e.condition, state.outputs.get(e.source_node_id, ""))
            for e in incoming
        ):
            logger.info("Panel #%d skipped: %s", node_id, SKIP_REASON)
            state.skipped.append(node_id)
            self._record(state, node_id, "")
            callbacks.emit("on_step_skip", node_id, SKIP_REASON)
            callbacks.emit("on_step_complete", node_id, "")
            return

        upstream = collect_upstream_outputs(
            node_id, snapshot.edges, state.outputs, snapshot.labels()
        )
        if panel.map_reduce and self._summarizer is not None:
            upstream = await self._summarize_upstream(snapshot, panel, upstream, token)

        prompt = build_augmented_prompt(panel.prompt, upstream, self._max_input_bytes)
        policy = NodeRetryPolicy.from_edges(incoming, self._min_retry_delay_ms)
        output = await self._call_with_retry(panel, prompt, policy, state, callbacks, token)

        self._record(state, node_id, output)
        callbacks.emit("on_step_complete", node_id, output)

    async def _call_with_retry(
        self,
        panel: PanelSpec,
        prompt: str,
        policy: NodeRetryPolicy,
        state: RunState,
        callbacks: PipelineCallbacks,
        token: CancellationToken,
    ) -> str:
        node_id = panel.node_id

        def on_retry(attempt: int, exc: BaseException | None) -> None:
            logger.warning(
                "Panel #%d attempt %d/%d failed: %s",
                node_id,
                attempt,
                policy.max_attempts,
                exc,
            )
            callbacks.emit("on_step_retry", node_id, attempt, policy.max_retries)

        output = ""
        try:
            async for attempt in policy.retrying(sleep=self._sleep, on_retry=on_retry):
                with attempt:
                    self._check_cancelled(token)
                    state.attempts[node_id] = attempt.retry_state.attempt_number
                    output = await self._call(panel, prompt)
        except AgentCallError as e:
            raise NodeExecutionError(node_id, str(e)) from e
        return output

    async def _call(self, panel: PanelSpec, prompt: str) -> str:
        mode = panel.orchestration_mode or NO_ORCHESTRATION
        if mode != NO_ORCHESTRATION:
            return await start_orchestration(self._invoker, panel.agent_id, prompt, mode)
        return await call_agent(self._invoker, panel.agent_id, prompt)

    async def _summarize_upstream(
        self,
        snapshot: PipelineSnapshot,
        panel: PanelSpec,
        upstream: list[UpstreamOutput],
        token: CancellationToken,
    ) -> list[UpstreamOutput]:
        """Replace folder panel outputs with their map-reduce summary."""
        result: list[UpstreamOutput] = []
        for item in upstream:
            source = snapshot.panel(item.node_id)
            files = parse_folder_output(item.output) if source.panel_type == PanelType.FOLDER else []
            if not files:
                result.append(item)
                continue
            request = SummarizeRequest(
                agent_id=panel.agent_id,
                workspace_id=snapshot.workspace_id,
                source_node_id=item.node_id,
                folder_path=source.folder_path,
                files=files,
            )
            try:
                summary = await self._summarizer.summarize(request, token=token)
            except SummarizationError as e:
                raise NodeExecutionError(panel.node_id, str(e)) from e
            logger.info(
                "Panel #%d: folder panel #%d summarized (%d map, %d reduce calls)",
                panel.node_id,
                item.node_id,
                summary.stats.map_chunk_count,
                summary.stats.reduce_call_count,
            )
            result.append(UpstreamOutput(item.node_id, summary.summary, item.label))
        return result

    def _record(self, state: RunState, node_id: int, output: str) -> None:
        state.outputs[node_id] = output
        self._outputs.set(node_id, output)

    @staticmethod
    def _check_cancelled(token: CancellationToken) -> None:
        if token.cancelled:
            raise PipelineStoppedError(token.reason or "Pipeline stopped.")

    @staticmethod
    def _fail(state: RunState, callbacks: PipelineCallbacks, error: str) -> RunState:
        state.status = RunStatus.FAILED
        state.error = error
        logger.error("Pipeline %s failed: %s", state.run_id, error)
        callbacks.emit("on_pipeline_fail", error)
        return state

    @staticmethod
    def _stop(state: RunState, callbacks: PipelineCallbacks, reason: str) -> RunState:
        state.status = RunStatus.STOPPED
        state.error = reason
        logger.info("Pipeline %s stopped: %s", state.run_id, reason)
        callbacks.emit("on_pipeline_stop", reason)
        return state
