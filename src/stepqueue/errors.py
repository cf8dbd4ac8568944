"""Error taxonomy for the step queue."""

from __future__ import annotations

from typing import Any


class StepQueueError(Exception):
    """Base class for every error raised by stepqueue."""


class InvalidActionError(StepQueueError, ValueError):
    """An Action was constructed with malformed fields."""


class UnhandledActionError(StepQueueError):
    """No handler in the chain accepted the action's kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"No handler accepts action kind {kind!r}")
        self.kind = kind


class HandlerExecutionError(StepQueueError):
    """A matched handler raised while executing an action."""

    def __init__(self, action: Any, handler: str, cause: BaseException) -> None:
        super().__init__(f"Handler {handler!r} failed on {action.kind!r}: {cause}")
        self.action = action
        self.handler = handler
        self.cause = cause


class AlreadyStartedError(StepQueueError, RuntimeError):
    """A Runner was started more than once."""


class ScenarioError(StepQueueError, ValueError):
    """A scenario line could not be parsed into an Action."""

    def __init__(self, line: int, text: str) -> None:
        super().__init__(f"line {line}: cannot parse step {text!r}")
        self.line = line
        self.text = text
