import pytest

from recent_changes.filters import ChangeFilter
from recent_changes.models import ChangeMode, ItemDescriptor


@pytest.mark.parametrize("threshold", [0, 1, 7, 15])
def test_threshold_is_inclusive(threshold, now, descriptor):
    change_filter = ChangeFilter(threshold)

    assert change_filter.evaluate(descriptor("ApexClass", "Edge", threshold), now) is not None
    assert change_filter.evaluate(descriptor("ApexClass", "Past", threshold + 1), now) is None


def test_evaluate_keeps_both_ages(now, descriptor):
    record = ChangeFilter(15).evaluate(
        descriptor("ApexClass", "Foo", modified_days_ago=5, created_days_ago=40), now
    )

    assert record.name == "Foo"
    assert record.type == "ApexClass"
    assert record.modification_age == 5
    assert record.creation_age == 40


def test_created_mode_uses_creation_age(now, descriptor):
    change_filter = ChangeFilter(15, ChangeMode.CREATED)

    recent = descriptor("Flow", "New_Flow", modified_days_ago=1, created_days_ago=3)
    old = descriptor("Flow", "Old_Flow", modified_days_ago=1, created_days_ago=30)

    assert change_filter.evaluate(recent, now) is not None
    assert change_filter.evaluate(old, now) is None


def test_author_restriction_uses_last_modifier(now, descriptor):
    change_filter = ChangeFilter(15, ChangeMode.MODIFIED, author="Ada Admin")

    mine = descriptor("Layout", "A", 2, modified_by="Ada Admin", created_by="Bob Builder")
    theirs = descriptor("Layout", "B", 2, modified_by="Bob Builder", created_by="Ada Admin")

    assert change_filter.evaluate(mine, now) is not None
    assert change_filter.evaluate(theirs, now) is None


def test_author_restriction_uses_creator_in_created_mode(now, descriptor):
    change_filter = ChangeFilter(15, ChangeMode.CREATED, author="Ada Admin")

    item = descriptor("Layout", "A", 2, 2, modified_by="Bob Builder", created_by="Ada Admin")

    assert change_filter.evaluate(item, now) is not None


def test_author_match_is_exact(now, descriptor):
    change_filter = ChangeFilter(15, author="Ada Admin")

    assert change_filter.evaluate(descriptor("Layout", "A", 2, modified_by="ada admin"), now) is None
    assert change_filter.evaluate(descriptor("Layout", "B", 2, modified_by="Ada Admin "), now) is None


def test_future_timestamps_are_accepted(now, descriptor):
    record = ChangeFilter(0).evaluate(descriptor("ApexClass", "Future", -3), now)

    assert record is not None
    assert record.modification_age == -3


def test_unparseable_timestamp_is_rejected(now):
    item = ItemDescriptor(type="ApexClass", full_name="Broken", last_modified_date="n/a")

    assert ChangeFilter(15).evaluate(item, now) is None


def test_refiltering_accepted_records_is_idempotent(now, descriptor):
    change_filter = ChangeFilter(10, author="Ada Admin")
    items = [
        descriptor("ApexClass", "A", 1),
        descriptor("ApexClass", "B", 10),
        descriptor("ApexClass", "C", 11),
        descriptor("ApexClass", "D", 3, modified_by="Bob Builder"),
    ]

    accepted = [r for r in (change_filter.evaluate(i, now) for i in items) if r is not None]

    assert [r.name for r in accepted] == ["A", "B"]
    assert [r for r in accepted if change_filter.accepts(r)] == accepted


@pytest.mark.parametrize("days", [-1, 1.5, "15", True])
def test_invalid_days_rejected(days):
    with pytest.raises(ValueError):
        ChangeFilter(days)


def test_unparseable_secondary_timestamp_has_no_age(now):
    item = ItemDescriptor(
        type="ApexClass",
        full_name="Partial",
        last_modified_date="2024-06-13T12:00:00.000Z",
        created_date="not a date",
    )

    record = ChangeFilter(15).evaluate(item, now)

    assert record.modification_age == 2
    assert record.creation_age is None
    assert record.to_dict()["creationAge"] is None
    assert ChangeFilter(15, ChangeMode.CREATED).accepts(record) is False
