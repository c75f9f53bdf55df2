"""Shared application utilities."""

from panelflow.application.shared.agent_calls import call_agent, start_orchestration

__all__ = ["call_agent", "start_orchestration"]
