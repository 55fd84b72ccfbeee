"""Ordered rule table evaluated by the edge router for every request path.

Each rule pairs a path predicate with an async action. The table is walked
top to bottom and the first matching rule answers the request.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from starlette.requests import Request
from starlette.responses import Response

PathPredicate = Callable[[str], bool]
Action = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class Rule:
    """One `match predicate -> action` entry of the table."""

    name: str
    matches: PathPredicate
    action: Action


def prefix_matcher(prefix: str) -> PathPredicate:
    """Match `prefix` itself and anything below it on a path-segment boundary."""

    prefix = "/" + prefix.strip("/")

    def _matches(path: str) -> bool:
        return path == prefix or path.startswith(prefix + "/")

    return _matches


def match_all(path: str) -> bool:
    return True


class RuleTable:
    """First-match dispatcher over an ordered sequence of rules."""

    def __init__(self, rules: Sequence[Rule]):
        if not rules:
            raise ValueError("A rule table needs at least one rule.")
        self.rules = tuple(rules)

    def resolve(self, path: str) -> Rule:
        """Return the first rule whose predicate accepts `path`."""
        for rule in self.rules:
            if rule.matches(path):
                return rule
        raise LookupError(f"No rule matches {path!r}.")

    async def dispatch(self, request: Request) -> Response:
        """Run the action of the rule selected for the request path."""
        rule = self.resolve(request.url.path)
        return await rule.action(request)
