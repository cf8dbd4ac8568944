"""Runner configuration: defaults, environment overrides, standard decorators."""

from __future__ import annotations

import os
from dataclasses import dataclass

from stepqueue import decorators
from stepqueue.decorators import Decorator
from stepqueue.runner import FailurePolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass
class RunnerConfig:
    """Configuration for a scenario run."""

    policy: FailurePolicy = FailurePolicy.CONTINUE
    retry_attempts: int = 1
    retry_delay: float = 0.0
    step_timeout: float = 15.0  # per action, seconds
    headless: bool = True
    verbose: bool = True
    base_url: str = ""

    @classmethod
    def from_env(cls) -> RunnerConfig:
        """Build a config from STEPQUEUE_* environment variables."""
        base = cls()
        policy = os.getenv("STEPQUEUE_POLICY")
        return cls(
            policy=FailurePolicy(policy.strip().lower()) if policy else base.policy,
            retry_attempts=int(os.getenv("STEPQUEUE_RETRIES") or base.retry_attempts),
            retry_delay=float(os.getenv("STEPQUEUE_RETRY_DELAY") or base.retry_delay),
            step_timeout=float(os.getenv("STEPQUEUE_STEP_TIMEOUT") or base.step_timeout),
            headless=_env_bool("STEPQUEUE_HEADLESS", base.headless),
            verbose=_env_bool("STEPQUEUE_VERBOSE", base.verbose),
            base_url=os.getenv("STEPQUEUE_BASE_URL", base.base_url),
        )


def default_decorators(config: RunnerConfig) -> list[Decorator]:
    """Standard stack in attach order: timeout innermost, logging outermost.

    Retry wraps the timeout so each attempt gets its own deadline; timing
    covers all attempts.
    """
    stack = []
    if config.step_timeout > 0:
        stack.append(decorators.timeout(config.step_timeout))
    if config.retry_attempts > 1:
        stack.append(decorators.retry(config.retry_attempts, delay=config.retry_delay))
    stack.append(decorators.timing())
    if config.verbose:
        stack.append(decorators.logging())
    return stack
