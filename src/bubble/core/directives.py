"""Action tags the model can emit to request another hop."""

import re
from dataclasses import dataclass

from bubble.routing.types import RouterAction


@dataclass(frozen=True)
class DirectiveRule:
    """Patterns that select an action. The first group is the payload."""

    action: RouterAction
    patterns: tuple[re.Pattern[str], ...]


def _tag(name: str) -> re.Pattern[str]:
    return re.compile(rf"<{name}>(.*?)</{name}>", re.DOTALL)


# Checked in order; the first rule with a match wins
DIRECTIVE_RULES: tuple[DirectiveRule, ...] = (
    DirectiveRule(
        RouterAction.DEEP_SEARCH,
        (
            _tag("DEEP"),
            re.compile(r"<SEARCH>deep\s+(.*?)</SEARCH>", re.IGNORECASE | re.DOTALL),
        ),
    ),
    DirectiveRule(RouterAction.SEARCH, (_tag("SEARCH"),)),
    DirectiveRule(RouterAction.THINK, (_tag("THINK"), re.compile(r"<THINK>"))),
    DirectiveRule(RouterAction.IMAGE, (_tag("IMAGE"),)),
    DirectiveRule(RouterAction.PROJECT, (_tag("PROJECT"),)),
    DirectiveRule(RouterAction.CANVAS, (_tag("CANVAS"),)),
    DirectiveRule(RouterAction.STUDY, (_tag("STUDY"),)),
)


@dataclass(frozen=True)
class Directive:
    """A matched action tag."""

    action: RouterAction
    payload: str


def scan_directives(text: str) -> Directive | None:
    """Find the highest-precedence directive in a hop's output.

    A bare ``<THINK>`` yields an empty payload.
    """
    for rule in DIRECTIVE_RULES:
        for pattern in rule.patterns:
            if match := pattern.search(text):
                payload = match.group(1) if pattern.groups else ""
                return Directive(action=rule.action, payload=payload.strip())
    return None
