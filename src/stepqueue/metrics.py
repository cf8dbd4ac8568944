"""Metrics collection and reporting, fed by the notification bus."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from stepqueue.bus import NotificationBus, Subscription
from stepqueue.results import Result


@dataclass
class StepMetric:
    """Metrics for a single executed action."""

    index: int
    kind: str
    target: str = ""
    wall_time: float = 0.0
    attempts: int = 1
    success: bool = False
    error: str = ""


@dataclass
class MetricsCollector:
    """Collects one StepMetric per published Result."""

    steps: list[StepMetric] = field(default_factory=list)
    run_start: float = field(default_factory=time.time)
    _subscription: Subscription | None = None

    def attach(self, bus: NotificationBus) -> Subscription:
        self._subscription = bus.subscribe(self.on_result)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def on_result(self, result: Result) -> None:
        self.steps.append(StepMetric(
            index=len(self.steps) + 1,
            kind=result.action.kind,
            target=result.action.target,
            wall_time=result.duration or 0.0,
            attempts=result.attempts,
            success=result.success,
            error=result.error or "",
        ))

    @property
    def total_wall_time(self) -> float:
        return time.time() - self.run_start

    @property
    def total_duration(self) -> float:
        return sum(s.wall_time for s in self.steps)

    @property
    def total_attempts(self) -> int:
        return sum(s.attempts for s in self.steps)

    @property
    def steps_succeeded(self) -> int:
        return sum(1 for s in self.steps if s.success)

    @property
    def steps_failed(self) -> int:
        return sum(1 for s in self.steps if not s.success)

    def print_step_summary(self, step_metric: StepMetric) -> None:
        status = "OK" if step_metric.success else "FAIL"
        target = f" {step_metric.target}" if step_metric.target else ""
        retry_info = f" attempts={step_metric.attempts}" if step_metric.attempts > 1 else ""
        err_info = f" err={step_metric.error}" if step_metric.error else ""
        print(
            f"  Step {step_metric.index:2d}: [{status}] "
            f"{step_metric.wall_time:5.2f}s "
            f"{step_metric.kind}{target}"
            f"{retry_info}{err_info}"
        )

    def print_report(self, state: str = "") -> None:
        print("\n" + "=" * 60)
        print("  RUN RESULTS")
        print("=" * 60)
        for s in self.steps:
            self.print_step_summary(s)
        print("-" * 60)
        if state:
            print(f"  Final state: {state}")
        print(f"  Passed: {self.steps_succeeded}/{len(self.steps)}")
        print(f"  Action time: {self.total_duration:.2f}s")
        print(f"  Total attempts: {self.total_attempts}")
        avg = self.total_duration / max(len(self.steps), 1)
        print(f"  Avg time/step: {avg:.2f}s")
        print("=" * 60 + "\n")
