"""Auto-chain trigger - reacts to a single node completing outside a full run."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from panelflow.application.pipeline.callbacks import PipelineCallbacks
from panelflow.application.pipeline.output_store import PanelOutputStore
from panelflow.application.shared.agent_calls import call_agent
from panelflow.domain.entities.pipeline import PipelineSnapshot
from panelflow.domain.errors import AgentCallError
from panelflow.domain.ports.agent import AgentInvokerPort
from panelflow.domain.services.prompt_assembler import (
    MAX_INPUT_BYTES,
    build_augmented_prompt,
    collect_upstream_outputs,
)

logger = logging.getLogger(__name__)

LiveReader = Callable[[PipelineSnapshot, int], str | None]


def read_static_output(snapshot: PipelineSnapshot, node_id: int) -> str | None:
    """Default live re-read: the panel's current static output."""
    return snapshot.panel(node_id).static_output or None


@dataclass
class AutoChainResult:
    """Outcome of one auto-chained target invocation."""

    target_node_id: int
    success: bool
    output: str = ""
    error: str | None = None


class AutoChainTrigger:
    """Runs ready auto-chain targets once each, without retry."""

    def __init__(
        self,
        invoker: AgentInvokerPort,
        outputs: PanelOutputStore,
        live_reader: LiveReader | None = None,
        max_input_bytes: int = MAX_INPUT_BYTES,
    ) -> None:
        self._invoker = invoker
        self._outputs = outputs
        self._live_reader = live_reader or read_static_output
        self._max_input_bytes = max_input_bytes

    async def on_node_completed(
        self,
        snapshot: PipelineSnapshot,
        node_id: int,
        output: str | None = None,
        callbacks: PipelineCallbacks | None = None,
    ) -> list[AutoChainResult]:
        """Invoke every ready target of node_id's autoChain edges.

        Targets that are not ready, not active, or lack an agent or prompt are
        ignored. Invocation failures are reported, never raised.
        """
        callbacks = callbacks or PipelineCallbacks()
        if output is not None:
            self._outputs.set(node_id, output)

        targets: list[int] = []
        for edge in snapshot.outgoing_edges(node_id):
            if edge.auto_chain and edge.target_node_id not in targets:
                targets.append(edge.target_node_id)

        results: list[AutoChainResult] = []
        for target_id in targets:
            if not self._is_ready(snapshot, target_id):
                logger.debug("Auto-chain target #%d not ready", target_id)
                continue

            panel = snapshot.panel(target_id)
            if not panel.is_active or not panel.agent_id or not panel.prompt:
                continue

            upstream = collect_upstream_outputs(
                target_id, snapshot.edges, self._outputs.snapshot(), snapshot.labels()
            )
            prompt = build_augmented_prompt(panel.prompt, upstream, self._max_input_bytes)

            logger.info("Auto-chain: panel #%d -> panel #%d", node_id, target_id)
            callbacks.emit("on_step_start", target_id)
            try:
                result_output = await call_agent(self._invoker, panel.agent_id, prompt)
            except AgentCallError as e:
                logger.warning("Auto-chain panel #%d failed: %s", target_id, e)
                callbacks.emit("on_step_fail", target_id, str(e))
                results.append(AutoChainResult(target_id, success=False, error=str(e)))
                continue

            self._outputs.set(target_id, result_output)
            callbacks.emit("on_step_complete", target_id, result_output)
            results.append(AutoChainResult(target_id, success=True, output=result_output))
        return results

    def _is_ready(self, snapshot: PipelineSnapshot, target_id: int) -> bool:
        """Every upstream source has a non-empty output, re-read live if missing."""
        for edge in snapshot.incoming_edges(target_id):
            source_id = edge.source_node_id
            if self._outputs.has_output(source_id):
                continue
            fresh = self._live_reader(snapshot, source_id)
            if not fresh:
                return False
            self._outputs.set(source_id, fresh)
        return True
