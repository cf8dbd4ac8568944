"""Decorator layer: composable wrappers around action execution.

A Decorator turns an executor into another executor. Stacks compose so that
the last-attached decorator is outermost: with attach order A, B, C a call
enters C, then B, then A, then the base executor, and the Result travels back
through A, B, C.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from stepqueue.actions import Action
from stepqueue.results import Result

Executor = Callable[[Action], Awaitable[Result]]


@dataclass(frozen=True)
class Decorator:
    """A named executor transform."""

    name: str
    wrap: Callable[[Executor], Executor]


class DecoratorStack:
    """Ordered decorators for one execution path (runner-level or per kind)."""

    def __init__(self, decorators: Iterable[Decorator] = ()) -> None:
        self._decorators: list[Decorator] = list(decorators)
        self._frozen = False

    def __len__(self) -> int:
        return len(self._decorators)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self._decorators]

    def attach(self, decorator: Decorator) -> None:
        if self._frozen:
            raise RuntimeError("Decorator stack is frozen once a run has started")
        self._decorators.append(decorator)

    def freeze(self) -> None:
        self._frozen = True

    def build_executor(self, base: Executor) -> Executor:
        """Fold the stack around `base`, last-attached outermost."""
        executor = base
        for d in self._decorators:
            executor = d.wrap(executor)
        return executor


# ---------------------------------------------------------------------------
# Built-in decorators
# ---------------------------------------------------------------------------


def retry(attempts: int = 3, delay: float = 0.0, backoff: float = 1.0) -> Decorator:
    """Re-run a failing action up to `attempts` times in total.

    The last Result is returned as-is when the budget runs out.
    """
    if attempts < 1:
        raise ValueError(f"retry attempts must be >= 1, got {attempts}")

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            wait = delay
            result = await inner(action)
            n = 1
            while not result.success and n < attempts:
                print(f"[retry] {action.describe()} failed ({result.error}), attempt {n + 1}/{attempts}")
                if wait > 0:
                    await asyncio.sleep(wait)
                    wait *= backoff
                result = await inner(action)
                n += 1
            return result.with_attempts(n)

        return run

    return Decorator(name=f"retry({attempts})", wrap=wrap)


def timing() -> Decorator:
    """Stamp the wall time spent in everything beneath this decorator."""

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            t0 = time.monotonic()
            result = await inner(action)
            return result.with_duration(time.monotonic() - t0)

        return run

    return Decorator(name="timing", wrap=wrap)


def logging(tag: str = "runner") -> Decorator:
    """Print one line before and one after each execution."""

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            print(f"[{tag}]   -> {action.describe()}")
            result = await inner(action)
            status = "OK" if result.success else "FAIL"
            dur = f" ({result.duration:.2f}s)" if result.duration is not None else ""
            err = f" err={result.error}" if result.error else ""
            print(f"[{tag}]   <- {action.describe()} {status}{dur}{err}")
            return result

        return run

    return Decorator(name=f"logging({tag})", wrap=wrap)


def timeout(seconds: float) -> Decorator:
    """Fail the action if it does not finish within `seconds`."""
    if seconds <= 0:
        raise ValueError(f"timeout must be positive, got {seconds}")

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            t0 = time.monotonic()
            try:
                return await asyncio.wait_for(inner(action), timeout=seconds)
            except asyncio.TimeoutError:
                return Result.fail(
                    action,
                    f"timed out after {seconds:g}s",
                    duration=time.monotonic() - t0,
                )

        return run

    return Decorator(name=f"timeout({seconds:g})", wrap=wrap)


def precondition(check: Callable[[Action], bool], reason: str) -> Decorator:
    """Skip execution with a failing Result when `check(action)` is false."""

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            if not check(action):
                return Result.fail(action, f"precondition failed: {reason}", duration=0.0)
            return await inner(action)

        return run

    return Decorator(name=f"precondition({reason})", wrap=wrap)


def annotate(**entries: str) -> Decorator:
    """Add fixed annotations to every Result passing through."""

    def wrap(inner: Executor) -> Executor:
        async def run(action: Action) -> Result:
            result = await inner(action)
            return result.annotate(**entries)

        return run

    return Decorator(name="annotate", wrap=wrap)
