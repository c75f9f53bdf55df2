"""Agent call helpers - normalize backend outcomes into engine errors.

Shared by the pipeline executor, the auto-chain trigger and the summarizer.
"""

import logging

from panelflow.domain.entities.agent import AgentExecution
from panelflow.domain.errors import AgentCallError, AgentExecutionError, RateLimitError
from panelflow.domain.ports.agent import AgentInvokerPort

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "rate limit", "too many requests", "resource_exhausted")


def is_rate_limit_message(message: str) -> bool:
    """Check if an error message carries a rate-limit signal."""
    lower = message.lower()
    return any(marker in lower for marker in RATE_LIMIT_MARKERS)


def output_or_raise(execution: AgentExecution) -> str:
    """Return output text of a completed execution, raise otherwise."""
    if execution.completed:
        return execution.output_text or ""
    message = execution.error_message or "Agent execution failed"
    if is_rate_limit_message(message):
        raise RateLimitError(message)
    raise AgentExecutionError(message)


def _wrap(exc: Exception) -> AgentCallError:
    message = str(exc) or type(exc).__name__
    if is_rate_limit_message(message):
        return RateLimitError(message)
    return AgentCallError(message)


async def call_agent(invoker: AgentInvokerPort, agent_id: str, prompt: str) -> str:
    """Run one agent call and return its output text.

    Raises:
        RateLimitError: Backend signalled a rate limit.
        AgentCallError: Any other failure.

    """
    try:
        execution = await invoker.invoke(agent_id, prompt)
    except AgentCallError:
        raise
    except Exception as e:
        logger.debug("Agent %s call raised: %s", agent_id, e)
        raise _wrap(e) from e
    return output_or_raise(execution)


async def start_orchestration(
    invoker: AgentInvokerPort,
    agent_id: str,
    prompt: str,
    mode: str,
) -> str:
    """Start an orchestration run; output is a reference to the run."""
    try:
        run = await invoker.orchestrate(agent_id, prompt, mode)
    except AgentCallError:
        raise
    except Exception as e:
        logger.debug("Agent %s orchestration raised: %s", agent_id, e)
        raise _wrap(e) from e
    return f"[orchestration:{run.id}]"
