"""Runner: drives a sequence of Actions to a terminal state.

IDLE -> RUNNING -> COMPLETED | ABORTED. Actions run strictly one at a time;
each Result is published before the next action starts. A runner is
single-use.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from stepqueue.actions import Action
from stepqueue.bus import NotificationBus
from stepqueue.chain import HandlerChain
from stepqueue.decorators import Decorator, DecoratorStack
from stepqueue.errors import (
    AlreadyStartedError,
    HandlerExecutionError,
    InvalidActionError,
    UnhandledActionError,
)
from stepqueue.results import Result


class RunState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class FailurePolicy(enum.Enum):
    CONTINUE = "continue"
    HALT_ON_FAILURE = "halt_on_failure"


class CancellationToken:
    """Checked between actions; cancelling never interrupts a running action."""

    def __init__(self) -> None:
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._reason is None:
            self._reason = reason


@dataclass
class RunReport:
    """Final state plus the ordered Results of a run."""

    state: RunState
    results: tuple[Result, ...] = ()
    skipped: tuple[Action, ...] = ()
    abort_reason: str | None = None

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED and self.failed == 0

    def summary(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": len(self.skipped),
            "abort_reason": self.abort_reason,
        }


class Runner:
    """Executes actions through decorators and the handler chain.

    Runner-level decorators wrap kind-level decorators, which wrap dispatch.
    """

    def __init__(
        self,
        actions: Iterable[Action],
        chain: HandlerChain,
        decorators: Iterable[Decorator] = (),
        bus: NotificationBus | None = None,
        policy: FailurePolicy = FailurePolicy.CONTINUE,
        kind_decorators: Mapping[str, Iterable[Decorator]] | None = None,
        token: CancellationToken | None = None,
        verbose: bool = True,
    ) -> None:
        self.actions: tuple[Action, ...] = tuple(actions)
        for i, a in enumerate(self.actions):
            if not isinstance(a, Action):
                raise InvalidActionError(f"Item {i} is not an Action: {a!r}")
        self.chain = chain
        self.decorators = DecoratorStack(decorators)
        self.kind_decorators: dict[str, DecoratorStack] = {
            kind: DecoratorStack(decs) for kind, decs in (kind_decorators or {}).items()
        }
        self.bus = bus if bus is not None else NotificationBus()
        self.policy = FailurePolicy(policy)
        self.token = token or CancellationToken()
        self.verbose = verbose
        self.state = RunState.IDLE
        self.results: list[Result] = []
        self.abort_reason: str | None = None

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[runner] {msg}")

    async def _dispatch(self, action: Action) -> Result:
        """Base executor: turns chain errors into failing Results."""
        try:
            return await self.chain.dispatch(action)
        except UnhandledActionError as e:
            return Result.fail(action, str(e), cause=e, duration=0.0)
        except HandlerExecutionError as e:
            return Result.fail(action, str(e), cause=e)

    def _executor_for(self, action: Action):
        executor = self._dispatch
        kind_stack = self.kind_decorators.get(action.kind)
        if kind_stack is not None:
            executor = kind_stack.build_executor(executor)
        return self.decorators.build_executor(executor)

    async def start(self) -> RunReport:
        """Run every action in order and return the final report."""
        if self.state is not RunState.IDLE:
            raise AlreadyStartedError("Runner instances are single-use")
        self.state = RunState.RUNNING
        self.decorators.freeze()
        for stack in self.kind_decorators.values():
            stack.freeze()
        self._log(f"Running {len(self.actions)} actions (policy={self.policy.value})")

        aborted, abort_reason = False, None
        try:
            for i, action in enumerate(self.actions):
                if self.token.cancelled:
                    aborted, abort_reason = True, self.token.reason
                    break
                result = await self._executor_for(action)(action)
                self.results.append(result)
                self.bus.publish(result)
                if not result.success:
                    self._log(f"Action {i + 1} failed: {result.error} {action.to_dict()}")
                    if self.policy is FailurePolicy.HALT_ON_FAILURE:
                        aborted, abort_reason = True, f"halted on failure of action {i + 1}"
                        break
        except Exception as e:
            self.state = RunState.ABORTED
            self.abort_reason = f"action {len(self.results) + 1} raised {e!r}"
            self._log(f"Aborted: {self.abort_reason}")
            raise

        dispatched = len(self.results)
        self.state = RunState.ABORTED if aborted else RunState.COMPLETED
        self.abort_reason = abort_reason
        if aborted:
            self._log(f"Aborted: {abort_reason}")
        else:
            self._log(f"Completed: {sum(r.success for r in self.results)}/{dispatched} passed")
        return RunReport(
            state=self.state,
            results=tuple(self.results),
            skipped=self.actions[dispatched:],
            abort_reason=abort_reason,
        )


def new_runner(
    actions: Iterable[Action],
    chain: HandlerChain,
    decorators: Iterable[Decorator] = (),
    bus: NotificationBus | None = None,
    policy: FailurePolicy = FailurePolicy.CONTINUE,
    **kwargs: Any,
) -> Runner:
    return Runner(actions, chain, decorators=decorators, bus=bus, policy=policy, **kwargs)


async def run_actions(
    actions: Iterable[Action],
    chain: HandlerChain,
    decorators: Iterable[Decorator] = (),
    bus: NotificationBus | None = None,
    policy: FailurePolicy = FailurePolicy.CONTINUE,
    **kwargs: Any,
) -> RunReport:
    """Build a runner and start it."""
    return await new_runner(actions, chain, decorators, bus, policy, **kwargs).start()
