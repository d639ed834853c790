from datetime import datetime, timedelta, timezone

import pytest

from recent_changes.models import ItemDescriptor


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> str:
    return (NOW - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def make_descriptor(
    type_name: str,
    name: str,
    modified_days_ago: int = 0,
    created_days_ago: int = 100,
    modified_by: str = "Ada Admin",
    created_by: str = "Ada Admin",
) -> ItemDescriptor:
    return ItemDescriptor(
        type=type_name,
        full_name=name,
        last_modified_date=days_ago(modified_days_ago),
        created_date=days_ago(created_days_ago),
        last_modified_by_name=modified_by,
        created_by_name=created_by,
    )


class FakeConnection:
    """In-memory org keyed by metadata type."""

    def __init__(
        self,
        items=(),
        api_version="60.0",
        all_types=None,
        failing_types=(),
        describe_error=None,
        identity_error=None,
        user_name="Ada Admin",
    ):
        self.items = list(items)
        self.api_version = api_version
        self.all_types = all_types
        self.failing_types = set(failing_types)
        self.describe_error = describe_error
        self.identity_error = identity_error
        self.user_name = user_name
        self.list_calls = []

    def describe_metadata_types(self):
        if self.describe_error is not None:
            raise self.describe_error
        return list(self.all_types or [])

    def list_metadata(self, types):
        self.list_calls.append(list(types))
        if self.failing_types.intersection(types):
            raise RuntimeError(f"INVALID_TYPE: {','.join(types)}")
        return [item for item in self.items if item.type in types]

    def identity(self):
        if self.identity_error is not None:
            raise self.identity_error
        return "005000000000001AAA"

    def user_display_name(self, user_id):
        return self.user_name


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def descriptor():
    return make_descriptor


@pytest.fixture
def fake_connection():
    return FakeConnection
