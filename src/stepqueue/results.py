"""Result dataclass: the immutable outcome of one executed Action."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from stepqueue.actions import Action


@dataclass(frozen=True)
class Result:
    """Outcome of executing one Action.

    `action` is a back-reference for lookup only. `cause` keeps the original
    exception when the failure came from a raising handler. Decorators may
    return modified copies (duration, attempts, annotations) but never mutate.
    """

    success: bool
    action: Action
    error: str | None = None
    duration: float | None = None
    cause: BaseException | None = field(default=None, compare=False, repr=False)
    attempts: int = field(default=1, compare=False)
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "annotations", dict(self.annotations or {}))

    @classmethod
    def ok(cls, action: Action, **kwargs) -> Result:
        return cls(success=True, action=action, **kwargs)

    @classmethod
    def fail(
        cls,
        action: Action,
        error: str,
        cause: BaseException | None = None,
        **kwargs,
    ) -> Result:
        return cls(success=False, action=action, error=error, cause=cause, **kwargs)

    @property
    def kind(self) -> str:
        return self.action.kind

    def with_duration(self, seconds: float) -> Result:
        return replace(self, duration=seconds)

    def with_attempts(self, attempts: int) -> Result:
        return replace(self, attempts=attempts)

    def annotate(self, **entries: str) -> Result:
        return replace(self, annotations={**self.annotations, **entries})
