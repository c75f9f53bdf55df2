"""Output cache - last successful output per panel, shared across runs."""

import logging

logger = logging.getLogger(__name__)


class PanelOutputStore:
    """In-memory map of panel id to its last successful output.

    Written by the executor and the auto-chain trigger, read by prompt
    assembly. Intermediate or partial output is never stored.
    """

    def __init__(self) -> None:
        self._outputs: dict[int, str] = {}

    def get(self, node_id: int) -> str | None:
        return self._outputs.get(node_id)

    def set(self, node_id: int, output: str) -> None:
        self._outputs[node_id] = output

    def has_output(self, node_id: int) -> bool:
        return bool(self._outputs.get(node_id))

    def snapshot(self) -> dict[int, str]:
        """Copy of all stored outputs."""
        return dict(self._outputs)

    def clear(self, node_id: int | None = None) -> None:
        """Drop one output, or all of them when node_id is None."""
        if node_id is None:
            logger.debug("Clearing %d cached outputs", len(self._outputs))
            self._outputs.clear()
        else:
            self._outputs.pop(node_id, None)
