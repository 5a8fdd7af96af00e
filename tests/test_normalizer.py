from __future__ import annotations

from datetime import datetime, timezone

import pytest

from creator_rss.errors import MalformedField
from creator_rss.normalizer import (
    canonical_url,
    format_rfc2822,
    parse_timestamp,
    repair_url,
    resolve_partial_date,
    resolve_timestamp,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def test_fragment_after_current_month_belongs_to_previous_year() -> None:
    assert resolve_partial_date("12-25", NOW) == _utc(2023, 12, 25)


def test_fragment_up_to_current_month_stays_in_current_year() -> None:
    assert resolve_partial_date("02-01", NOW) == _utc(2024, 2, 1)
    assert resolve_partial_date("03-15", NOW) == _utc(2024, 3, 15)


def test_single_digit_fragment_is_padded() -> None:
    assert resolve_partial_date("3-5", NOW) == _utc(2024, 3, 5)
    assert resolve_partial_date("4-1", NOW) == _utc(2023, 4, 1)


def test_full_date_passes_through() -> None:
    assert resolve_partial_date("2022-07-04", NOW) == _utc(2022, 7, 4)


@pytest.mark.parametrize("text", ["garbage", "", None, "昨天", "13-40", "2022-13-45", "2024/03/01"])
def test_unrecognized_dates_fall_back_to_january_first(text: str | None) -> None:
    assert resolve_partial_date(text, NOW) == _utc(2024, 1, 1)


def test_naive_reference_is_treated_as_utc() -> None:
    assert resolve_partial_date("12-25", datetime(2024, 1, 5)) == _utc(2023, 12, 25)


def test_parse_timestamp_normalizes_to_utc() -> None:
    parsed = parse_timestamp("2024-03-10T20:30:00+02:00")
    assert parsed == datetime(2024, 3, 10, 18, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-03-10 18:30").tzinfo is timezone.utc


def test_parse_timestamp_rejects_garbage() -> None:
    with pytest.raises(MalformedField):
        parse_timestamp("not a date")
    with pytest.raises(MalformedField):
        parse_timestamp(None)


def test_resolve_timestamp_falls_back() -> None:
    assert resolve_timestamp("not a date", NOW) == _utc(2024, 1, 1)
    assert resolve_timestamp("2024-03-10T18:30:00Z", NOW) == datetime(2024, 3, 10, 18, 30, tzinfo=timezone.utc)


def test_format_rfc2822_uses_gmt() -> None:
    assert format_rfc2822(datetime(2025, 11, 10, 10, 0, tzinfo=timezone.utc)) == "Mon, 10 Nov 2025 10:00:00 GMT"
    assert format_rfc2822(datetime(2025, 11, 10, 10, 0)) == "Mon, 10 Nov 2025 10:00:00 GMT"


def test_repair_protocol_relative_url() -> None:
    assert repair_url("//img.example.com/x.jpg") == "https://img.example.com/x.jpg"
    assert repair_url("https://a/b") == "https://a/b"
    assert repair_url(None) == ""


def test_canonical_url_drops_query_and_resolves_relative() -> None:
    assert (
        canonical_url("//www.bilibili.com/video/BV1aa411?spm_id_from=333.999")
        == "https://www.bilibili.com/video/BV1aa411"
    )
    assert canonical_url("/video/BV1", base="https://www.bilibili.com") == "https://www.bilibili.com/video/BV1"
    assert canonical_url("") == ""


@pytest.mark.parametrize("text", ["12", "10:00", "March", "2024-03"])
def test_parse_timestamp_rejects_incomplete_dates(text: str) -> None:
    with pytest.raises(MalformedField):
        parse_timestamp(text)


def test_incomplete_timestamp_resolves_against_reference_year() -> None:
    assert resolve_timestamp("10:00", NOW) == _utc(2024, 1, 1)
