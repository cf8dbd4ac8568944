"""Tests for the decorator layer."""

from __future__ import annotations

import asyncio

import pytest

from stepqueue import decorators
from stepqueue.actions import Action
from stepqueue.decorators import DecoratorStack
from stepqueue.results import Result
from tests.conftest import tracing_decorator


def _base(trace: list[str], succeed: bool = True):
    async def run(action):
        trace.append("base")
        return Result.ok(action) if succeed else Result.fail(action, "nope")

    return run


class TestDecoratorStack:
    @pytest.mark.asyncio
    async def test_last_attached_is_outermost(self):
        trace: list[str] = []
        stack = DecoratorStack()
        for name in ("A", "B", "C"):
            stack.attach(tracing_decorator(name, trace))
        await stack.build_executor(_base(trace))(Action(kind="click"))
        assert trace == ["C:in", "B:in", "A:in", "base", "A:out", "B:out", "C:out"]

    @pytest.mark.asyncio
    async def test_composition_is_deterministic(self):
        traces = []
        for _ in range(2):
            trace: list[str] = []
            stack = DecoratorStack([tracing_decorator("A", trace), tracing_decorator("B", trace)])
            await stack.build_executor(_base(trace))(Action(kind="click"))
            traces.append(trace)
        assert traces[0] == traces[1]

    @pytest.mark.asyncio
    async def test_empty_stack_is_base(self):
        trace: list[str] = []
        result = await DecoratorStack().build_executor(_base(trace))(Action(kind="click"))
        assert result.success
        assert trace == ["base"]

    def test_names(self):
        stack = DecoratorStack([decorators.timing(), decorators.retry(2)])
        assert stack.names == ["timing", "retry(2)"]
        assert len(stack) == 2

    def test_frozen_stack_rejects_attach(self):
        stack = DecoratorStack()
        stack.freeze()
        with pytest.raises(RuntimeError):
            stack.attach(decorators.timing())


class TestRetry:
    @pytest.mark.asyncio
    async def test_always_failing_runs_exactly_n_times(self):
        attempts = []

        async def failing(action):
            attempts.append(len(attempts) + 1)
            return Result.fail(action, f"attempt {len(attempts)}")

        run = decorators.retry(3).wrap(failing)
        result = await run(Action(kind="click"))
        assert len(attempts) == 3
        assert result.success is False
        assert result.error == "attempt 3"
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_returns_last_result(self):
        last = {}

        async def failing(action):
            last["r"] = Result.fail(action, "x", duration=0.5)
            return last["r"]

        result = await decorators.retry(3).wrap(failing)(Action(kind="click"))
        assert result == last["r"]
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_stops_on_success(self):
        calls = []

        async def flaky(action):
            calls.append(1)
            if len(calls) < 2:
                return Result.fail(action, "flaky")
            return Result.ok(action)

        result = await decorators.retry(5).wrap(flaky)(Action(kind="click"))
        assert result.success
        assert len(calls) == 2
        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_waits_between_attempts(self, monkeypatch):
        sleeps = []

        async def fake_sleep(secs):
            sleeps.append(secs)

        monkeypatch.setattr(decorators.asyncio, "sleep", fake_sleep)

        async def failing(action):
            return Result.fail(action, "x")

        await decorators.retry(3, delay=0.1, backoff=2.0).wrap(failing)(Action(kind="click"))
        assert sleeps == [0.1, 0.2]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            decorators.retry(0)


class TestTiming:
    @pytest.mark.asyncio
    async def test_stamps_duration(self):
        async def slow(action):
            await asyncio.sleep(0.01)
            return Result.ok(action, duration=0.0)

        result = await decorators.timing().wrap(slow)(Action(kind="wait"))
        assert result.duration >= 0.005


class TestTimeout:
    @pytest.mark.asyncio
    async def test_expiry_returns_failure(self):
        async def hang(action):
            await asyncio.sleep(10)
            return Result.ok(action)

        result = await decorators.timeout(0.01).wrap(hang)(Action(kind="wait"))
        assert result.success is False
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_fast_call_passes_through(self):
        async def fast(action):
            return Result.ok(action)

        result = await decorators.timeout(1).wrap(fast)(Action(kind="click"))
        assert result.success

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            decorators.timeout(0)


class TestPrecondition:
    @pytest.mark.asyncio
    async def test_short_circuits(self):
        trace: list[str] = []
        dec = decorators.precondition(lambda a: bool(a.target), "target required")
        result = await dec.wrap(_base(trace))(Action(kind="click"))
        assert result.success is False
        assert "target required" in result.error
        assert trace == []

    @pytest.mark.asyncio
    async def test_passes_when_satisfied(self):
        trace: list[str] = []
        dec = decorators.precondition(lambda a: bool(a.target), "target required")
        result = await dec.wrap(_base(trace))(Action(kind="click", target="#a"))
        assert result.success
        assert trace == ["base"]


class TestLoggingAndAnnotate:
    @pytest.mark.asyncio
    async def test_logging_prints_before_and_after(self, capsys):
        trace: list[str] = []
        await decorators.logging("test").wrap(_base(trace, succeed=False))(
            Action(kind="click", target="#a")
        )
        out = capsys.readouterr().out
        assert "[test]   -> click #a" in out
        assert "FAIL" in out
        assert "err=nope" in out

    @pytest.mark.asyncio
    async def test_annotate(self):
        trace: list[str] = []
        result = await decorators.annotate(suite="smoke").wrap(_base(trace))(Action(kind="click"))
        assert result.annotations == {"suite": "smoke"}

    @pytest.mark.asyncio
    async def test_logging_outside_retry_logs_once(self, capsys):
        async def failing(action):
            return Result.fail(action, "x")

        stack = DecoratorStack([decorators.retry(3), decorators.logging("outer")])
        await stack.build_executor(failing)(Action(kind="click"))
        out = capsys.readouterr().out
        assert out.count("[outer]   ->") == 1
        assert out.count("[retry]") == 2
