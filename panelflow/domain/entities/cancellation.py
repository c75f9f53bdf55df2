"""Cooperative cancellation shared by the node walk and the map phase."""


class CancellationToken:
    """Set once; checked at the top of each loop iteration by the engine."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "Pipeline stopped.") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason
