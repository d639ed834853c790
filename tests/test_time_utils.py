from datetime import datetime, timezone, timedelta

from recent_changes.time_utils import age_in_days, ensure_utc, parse_timestamp


def test_parse_timestamp_handles_salesforce_format():
    parsed = parse_timestamp("2024-06-10T08:30:00.000Z")

    assert parsed == datetime(2024, 6, 10, 8, 30, tzinfo=timezone.utc)


def test_parse_timestamp_normalizes_offsets_to_utc():
    parsed = parse_timestamp("2024-06-10T10:30:00+02:00")

    assert parsed == datetime(2024, 6, 10, 8, 30, tzinfo=timezone.utc)


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("yesterday") is None


def test_ensure_utc_assumes_naive_is_utc():
    assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc


def test_age_counts_only_full_days():
    reference = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    assert age_in_days(reference, datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)) == 5
    assert age_in_days(reference, datetime(2024, 1, 5, 13, 0, tzinfo=timezone.utc)) == 4
    assert age_in_days(reference, datetime(2024, 1, 5, 11, 0, tzinfo=timezone.utc)) == 5
    assert age_in_days(reference, datetime(2024, 1, 10, 0, 0, tzinfo=timezone.utc)) == 0
    assert age_in_days(reference, reference) == 0


def test_age_across_midnight_is_not_a_full_day():
    reference = datetime(2024, 1, 10, 0, 30, tzinfo=timezone.utc)
    subject = datetime(2024, 1, 9, 23, 30, tzinfo=timezone.utc)

    assert age_in_days(reference, subject) == 0


def test_age_is_negative_for_future_timestamps():
    reference = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)

    assert age_in_days(reference, datetime(2024, 1, 10, 13, 0, tzinfo=timezone.utc)) == -5
    assert age_in_days(reference, datetime(2024, 1, 10, 11, 0, tzinfo=timezone.utc)) == -4
    assert age_in_days(reference, reference + timedelta(hours=1)) == 0


def test_age_handles_mixed_timezones():
    reference = datetime(2024, 1, 10, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    subject = datetime(2024, 1, 9, 7, 0)

    assert age_in_days(reference, subject) == 1
