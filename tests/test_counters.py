import pytest
from sqlalchemy.dialects import sqlite

from app.models import Property
from app.schemas.property import PropertyUpdate
from app.services.counters import CounterMutation, apply_counter_mutation, counter_updates


@pytest.mark.parametrize(
    "value, increment, decrement, expected",
    [
        (0, False, True, 0),
        (1, False, True, 0),
        (5, True, False, 6),
        (0, True, True, 0),
        (3, True, True, 3),
        (7, False, False, 7),
    ],
)
def test_counter_never_goes_below_zero(value, increment, decrement, expected):
    assert apply_counter_mutation(value, increment, decrement) == expected


def test_mutation_reads_update_flags():
    patch = PropertyUpdate(increment_view_count=True, decrement_favorite_count=True)
    mutation = CounterMutation.from_flags(patch)
    assert mutation.steps("view") == (True, False)
    assert mutation.steps("favorite") == (False, True)
    assert mutation.steps("inquiry") == (False, False)
    assert not mutation.is_empty
    assert CounterMutation.from_flags(PropertyUpdate()).is_empty


def test_counter_updates_only_touch_requested_columns():
    values = counter_updates(Property, CounterMutation(increment_inquiry_count=True, decrement_view_count=True))
    assert set(values) == {"inquiry_count", "view_count"}


def test_decrement_is_floored_in_sql():
    values = counter_updates(Property, CounterMutation(decrement_view_count=True))
    sql = str(values["view_count"].compile(dialect=sqlite.dialect()))
    assert "CASE" in sql
    assert "ELSE" in sql
