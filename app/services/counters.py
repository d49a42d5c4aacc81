"""
Engagement counter changes (views, inquiries, favorites).

Counters are never read, modified and written back by the application.
``counter_updates`` turns the requested changes into column expressions for a
single UPDATE so concurrent requests cannot lose each other's changes.
For each counter the increment is applied first and the decrement second,
and the decrement never takes a counter below zero.
"""
from dataclasses import dataclass
from typing import Dict

from sqlalchemy import case

COUNTERS = ("view", "inquiry", "favorite")


@dataclass(frozen=True)
class CounterMutation:
    increment_view_count: bool = False
    increment_inquiry_count: bool = False
    increment_favorite_count: bool = False
    decrement_view_count: bool = False
    decrement_inquiry_count: bool = False
    decrement_favorite_count: bool = False

    @classmethod
    def from_flags(cls, source) -> "CounterMutation":
        return cls(**{name: bool(getattr(source, name, False)) for name in cls.__dataclass_fields__})

    def steps(self, counter: str):
        """(increment, decrement) requested for one counter name."""
        return (
            getattr(self, f"increment_{counter}_count"),
            getattr(self, f"decrement_{counter}_count"),
        )

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.__dataclass_fields__)


VIEW_ONLY = CounterMutation(increment_view_count=True)


def apply_counter_mutation(value: int, increment: bool, decrement: bool) -> int:
    """In-memory version of the rule ``counter_updates`` expresses in SQL."""
    if increment:
        value = value + 1
    if decrement:
        value = max(value - 1, 0)
    return value


def counter_updates(model, mutation: CounterMutation) -> Dict[str, object]:
    """Column name -> SQL expression for every counter the mutation touches."""
    values = {}
    for counter in COUNTERS:
        increment, decrement = mutation.steps(counter)
        if not (increment or decrement):
            continue
        name = f"{counter}_count"
        expression = getattr(model, name)
        if increment:
            expression = expression + 1
        if decrement:
            expression = case((expression > 0, expression - 1), else_=0)
        values[name] = expression
    return values
