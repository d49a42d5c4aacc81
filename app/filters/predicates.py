"""
Backend-neutral predicate trees.

A search is described as a tree of ``Clause`` leaves combined with ``AllOf``
and ``AnyOf`` nodes. Field names are logical (``"monthly_rent"``,
``"city"``...); each storage backend maps them to its own representation by
implementing ``PredicateVisitor``. ``ObjectMatcher`` is the in-memory
backend: it evaluates a tree against plain objects or dicts.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Tuple


class Op(str, enum.Enum):
    EQ = "eq"
    NE = "ne"
    CONTAINS = "contains"  # case-insensitive substring
    GTE = "gte"
    LTE = "lte"
    GT = "gt"
    LT = "lt"
    IS_NULL = "is_null"
    HAS_ALL = "has_all"  # collection field holds every listed value
    EXISTS = "exists"  # related collection has a member matching value (a predicate)


class Predicate:
    def accept(self, visitor: "PredicateVisitor"):
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "AllOf":
        return AllOf((self, other))

    def __or__(self, other: "Predicate") -> "AnyOf":
        return AnyOf((self, other))


@dataclass(frozen=True)
class Clause(Predicate):
    field: str
    op: Op
    value: Any = None

    def accept(self, visitor):
        return visitor.visit_clause(self)


@dataclass(frozen=True)
class AllOf(Predicate):
    parts: Tuple[Predicate, ...] = ()

    def accept(self, visitor):
        return visitor.visit_all(self)


@dataclass(frozen=True)
class AnyOf(Predicate):
    parts: Tuple[Predicate, ...] = ()

    def accept(self, visitor):
        return visitor.visit_any(self)


@dataclass(frozen=True)
class Not(Predicate):
    part: Predicate

    def accept(self, visitor):
        return visitor.visit_not(self)


# An empty conjunction matches everything
MATCH_ALL = AllOf(())


def all_of(parts: Iterable[Predicate]) -> AllOf:
    return AllOf(tuple(parts))


def any_of(parts: Iterable[Predicate]) -> AnyOf:
    return AnyOf(tuple(parts))


def clauses_of(predicate: Predicate) -> list:
    """Flatten a tree into its leaf clauses (used for logging and tests)."""
    if isinstance(predicate, Clause):
        return [predicate]
    if isinstance(predicate, Not):
        return clauses_of(predicate.part)
    found = []
    for part in predicate.parts:
        found.extend(clauses_of(part))
    return found


class PredicateVisitor:
    def visit_clause(self, clause: Clause):
        raise NotImplementedError

    def visit_all(self, node: AllOf):
        raise NotImplementedError

    def visit_any(self, node: AnyOf):
        raise NotImplementedError

    def visit_not(self, node: Not):
        raise NotImplementedError


class ObjectMatcher(PredicateVisitor):
    """
    Evaluates a predicate against one document (object attributes or dict keys).

    A missing or None field never satisfies a comparison, matching SQL NULL
    semantics so that both backends agree on the same tree.
    """

    def __init__(self, document: Any):
        self.document = document

    def matches(self, predicate: Predicate) -> bool:
        return bool(predicate.accept(self))

    def _get(self, field: str):
        if isinstance(self.document, dict):
            return self.document.get(field)
        return getattr(self.document, field, None)

    def visit_all(self, node):
        return all(part.accept(self) for part in node.parts)

    def visit_any(self, node):
        return any(part.accept(self) for part in node.parts)

    def visit_not(self, node):
        return not node.part.accept(self)

    def visit_clause(self, clause):
        actual = self._get(clause.field)
        op, expected = clause.op, clause.value
        if op is Op.IS_NULL:
            return (actual is None) == bool(expected)
        if op is Op.EXISTS:
            return any(ObjectMatcher(member).matches(expected) for member in actual or ())
        if actual is None:
            return False
        if isinstance(actual, enum.Enum):
            actual = actual.value
        if isinstance(expected, enum.Enum):
            expected = expected.value
        if op is Op.EQ:
            return actual == expected
        if op is Op.NE:
            return actual != expected
        if op is Op.CONTAINS:
            return str(expected).lower() in str(actual).lower()
        if op is Op.GTE:
            return actual >= expected
        if op is Op.LTE:
            return actual <= expected
        if op is Op.GT:
            return actual > expected
        if op is Op.LT:
            return actual < expected
        if op is Op.HAS_ALL:
            return set(expected) <= set(actual)
        raise ValueError(f"Unsupported operator: {op}")
