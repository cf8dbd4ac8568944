"""Scenario parsing: plain-text steps into Actions.

One step per line. Blank lines and lines starting with '#' are ignored.
Each line is tested against an ordered pattern table; first match wins.
More specific patterns MUST come before generic ones.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from stepqueue.actions import Action
from stepqueue.errors import ScenarioError

_QUOTED = r"\"(?P<text>(?:[^\"\\]|\\.)*)\""

_PATTERNS: list[tuple[re.Pattern[str], Callable[[re.Match[str]], Action]]] = [
    # "wait 2" / "wait 1.5s"
    (
        re.compile(r"wait\s+(?P<secs>\d+(?:\.\d+)?)\s*s?"),
        lambda m: Action(kind="wait", payload=float(m.group("secs"))),
    ),
    # "press Enter"
    (
        re.compile(r"press\s+(?P<key>\S+)"),
        lambda m: Action(kind="press", payload=m.group("key")),
    ),
    # "goto https://..." / "open /login"
    (
        re.compile(r"(?:goto|open)\s+(?P<url>\S+)"),
        lambda m: Action(kind="goto", target=m.group("url")),
    ),
    # 'type #email "me@example.com"' / 'fill ...'
    (
        re.compile(r"(?:type|fill)\s+(?P<sel>.+?)\s+" + _QUOTED),
        lambda m: Action(kind="fill", target=m.group("sel"), payload=_unescape(m.group("text"))),
    ),
    # 'expect h1 "Welcome"'
    (
        re.compile(r"expect\s+(?P<sel>.+?)\s+" + _QUOTED),
        lambda m: Action(kind="assert_text", target=m.group("sel"), payload=_unescape(m.group("text"))),
    ),
    # "click #submit 3 times" — MUST be before plain click
    (
        re.compile(r"click\s+(?P<sel>.+?)\s+(?P<n>\d+)\s+times?"),
        lambda m: Action(kind="click", target=m.group("sel"), metadata={"count": m.group("n")}),
    ),
    (
        re.compile(r"click\s+(?P<sel>.+)"),
        lambda m: Action(kind="click", target=m.group("sel")),
    ),
    (
        re.compile(r"hover\s+(?P<sel>.+)"),
        lambda m: Action(kind="hover", target=m.group("sel")),
    ),
    # "scroll 500" / "scroll"
    (
        re.compile(r"scroll(?:\s+(?P<px>\d+)(?:\s*px)?)?"),
        lambda m: Action(kind="scroll", payload=int(m.group("px") or 600)),
    ),
]


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def parse_line(line: str) -> Action | None:
    """Parse one step. Returns None if no pattern applies."""
    text = line.strip()
    for pattern, factory in _PATTERNS:
        m = pattern.fullmatch(text)
        if m:
            return factory(m)
    return None


def parse(text: str) -> list[Action]:
    """Parse a whole scenario; raises ScenarioError on the first bad line."""
    actions = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        action = parse_line(line)
        if action is None:
            raise ScenarioError(lineno, line)
        actions.append(action.with_metadata(line=str(lineno)))
    return actions


def load(path: str | Path) -> list[Action]:
    return parse(Path(path).read_text(encoding="utf-8"))
