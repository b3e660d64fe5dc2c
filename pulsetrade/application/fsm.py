from dataclasses import dataclass
from typing import Dict


class InvalidRunState(Exception):
    """Raised when an invalid run-state transition is attempted."""


STOPPED = "STOPPED"
RUNNING = "RUNNING"

VALID_TRANSITIONS: Dict[str, set[str]] = {
    STOPPED: {RUNNING},
    RUNNING: {STOPPED},
}


@dataclass
class RunStateMachine:
    state: str = STOPPED

    def transition(self, new_state: str) -> None:
        allowed = VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise InvalidRunState(f"Cannot transition from {self.state} to {new_state}")
        self.state = new_state

    @property
    def running(self) -> bool:
        return self.state == RUNNING
