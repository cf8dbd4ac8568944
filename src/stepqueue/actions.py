"""Action dataclass: one immutable test step."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from stepqueue.errors import InvalidActionError


@dataclass(frozen=True)
class Action:
    """A test step to execute.

    `kind` selects the handler (click, fill, wait, ...). `target` is an opaque
    selector string the handler interprets. `payload` carries auxiliary data
    such as text to type. `metadata` holds string annotations (retry counts,
    tags); it is copied on construction so the action never changes after it
    is built.
    """

    kind: str
    target: str = ""
    payload: Any = field(default=None, hash=False)
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.kind, str) or not self.kind.strip():
            raise InvalidActionError(f"Action kind must be a non-empty string, got {self.kind!r}")
        if not isinstance(self.target, str):
            raise InvalidActionError(f"Action target must be a string, got {self.target!r}")
        meta = dict(self.metadata or {})
        for k, v in meta.items():
            if not isinstance(k, str) or not isinstance(v, str):
                raise InvalidActionError(f"Action metadata must map str to str, got {k!r}: {v!r}")
        object.__setattr__(self, "metadata", meta)

    def with_metadata(self, **entries: str) -> Action:
        """Return a copy with `entries` merged into metadata."""
        return replace(self, metadata={**self.metadata, **entries})

    def describe(self) -> str:
        return f"{self.kind} {self.target}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v}
