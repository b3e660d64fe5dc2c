from dataclasses import dataclass


class KillSwitchEngaged(Exception):
    """Raised when trading must be halted."""


@dataclass
class KillSwitch:
    """Halts all new orders once the daily loss limit is breached or on request."""

    daily_loss_limit: float
    manual_triggered: bool = False

    def check(self, pnl: float) -> None:
        if pnl < -self.daily_loss_limit:
            raise KillSwitchEngaged("Daily loss limit exceeded")
        if self.manual_triggered:
            raise KillSwitchEngaged("Manual halt triggered")

    def trigger_manual(self) -> None:
        self.manual_triggered = True

    def release_manual(self) -> None:
        self.manual_triggered = False
