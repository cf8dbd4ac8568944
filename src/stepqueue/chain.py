"""Handler chain: ordered, first-match-wins dispatch of Actions.

Handlers are plain values (a predicate plus an execute callable), not a class
hierarchy. The chain tries them in registration order and runs only the first
one whose predicate accepts the action's kind. There is no sorting by
specificity: reorder the chain to change priority.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Union

from stepqueue.actions import Action
from stepqueue.errors import HandlerExecutionError, UnhandledActionError
from stepqueue.results import Result

ExecuteFn = Callable[[Action], Union[Result, bool, Awaitable[Union[Result, bool]]]]


@dataclass(frozen=True)
class Handler:
    """Capability-scoped executor.

    If `swallow_predicate_errors` is set, an exception raised by `can_handle`
    counts as "cannot handle" and the chain moves on. Otherwise the exception
    propagates out of dispatch.
    """

    name: str
    can_handle: Callable[[str], bool]
    execute: ExecuteFn
    swallow_predicate_errors: bool = False


def handler_for(name: str, kinds: str | Iterable[str], execute: ExecuteFn) -> Handler:
    """Build a handler accepting a fixed set of kinds."""
    accepted = frozenset([kinds] if isinstance(kinds, str) else kinds)
    return Handler(name=name, can_handle=lambda kind: kind in accepted, execute=execute)


def catch_all(name: str, execute: ExecuteFn) -> Handler:
    """Build a handler that accepts every kind. Register it last."""
    return Handler(name=name, can_handle=lambda _kind: True, execute=execute)


def _coerce(action: Action, outcome: Result | bool) -> Result:
    if isinstance(outcome, Result):
        return outcome
    if outcome is True:
        return Result.ok(action)
    if outcome is False:
        return Result.fail(action, f"{action.kind} reported failure")
    raise TypeError(f"execute must return Result or bool, got {type(outcome).__name__}")


class HandlerChain:
    """Ordered list of handlers with first-match-wins dispatch."""

    def __init__(self, handlers: Iterable[Handler] = ()) -> None:
        self._handlers: list[Handler] = []
        for h in handlers:
            self.register(h)

    def __len__(self) -> int:
        return len(self._handlers)

    @property
    def handlers(self) -> tuple[Handler, ...]:
        return tuple(self._handlers)

    def register(self, handler: Handler, position: int | None = None) -> Handler:
        """Add a handler at the end of the chain, or at `position`."""
        if position is None:
            self._handlers.append(handler)
        else:
            self._handlers.insert(position, handler)
        return handler

    def unregister(self, name: str) -> Handler:
        for i, h in enumerate(self._handlers):
            if h.name == name:
                return self._handlers.pop(i)
        raise KeyError(name)

    def find(self, kind: str) -> Handler:
        """Return the first handler accepting `kind`."""
        for h in self._handlers:
            try:
                accepted = h.can_handle(kind)
            except Exception as e:
                if not h.swallow_predicate_errors:
                    raise
                print(f"[chain] {h.name}.can_handle({kind!r}) raised {e!r}, skipping")
                continue
            if accepted:
                return h
        raise UnhandledActionError(kind)

    async def dispatch(self, action: Action) -> Result:
        """Execute `action` with the first capable handler.

        Raises UnhandledActionError when nothing matches and
        HandlerExecutionError when the matched handler raises or returns
        something other than a Result or bool.
        """
        handler = self.find(action.kind)
        t0 = time.monotonic()
        try:
            outcome = handler.execute(action)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            result = _coerce(action, outcome)
        except Exception as e:
            raise HandlerExecutionError(action, handler.name, e) from e
        if result.duration is None:
            result = result.with_duration(time.monotonic() - t0)
        return result
