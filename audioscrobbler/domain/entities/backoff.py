"""Safe mode bookkeeping: consecutive rejections and the resulting interval."""

from attrs import define, field, validators


@define(slots=True)
class BackoffState:
    """Failure counter and submit interval.

    ``submit_interval`` only grows through escalation. It goes down only when
    the server advertises a new interval. ``base_interval`` is the interval
    escalation multiplies from.
    """

    base_interval: int = field(validator=validators.ge(0))
    submit_interval: int = field(validator=validators.ge(0))
    failure_count: int = field(default=0, validator=validators.ge(0))

    @classmethod
    def from_interval(cls, interval: int) -> "BackoffState":
        return cls(base_interval=interval, submit_interval=interval)

    @property
    def in_safe_mode(self) -> bool:
        return self.failure_count > 0

    def record_failure(self, max_failures: int) -> bool:
        """Count one more rejection. Returns False once saturated."""
        if self.failure_count >= max_failures:
            return False
        self.failure_count += 1
        return True

    def scale_interval(self, fallback: int) -> int:
        """Multiply the base interval by the failure count; never 0, never lower."""
        interval = self.base_interval * self.failure_count
        if interval <= 0:
            interval = fallback
        self.submit_interval = max(self.submit_interval, interval)
        return self.submit_interval

    def apply_advertised(self, seconds: int, minimum: int) -> bool:
        """Accept a server-advertised interval if above ``minimum``."""
        if seconds <= minimum:
            return False
        self.base_interval = seconds
        self.submit_interval = seconds
        return True

    def clear_failures(self) -> None:
        self.failure_count = 0
