"""
派生字段计算测试

工时、进度状态和结算金额均为纯函数，不需要数据库
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.exceptions import ValidationException
from app.models.task import TrackStatus
from app.services.metrics import (
    derive_reported_hours,
    parse_time_value,
    quantize,
    settlement_totals,
    track_status_for,
)

DAY = date(2024, 5, 1)
UTC = timezone.utc


@pytest.mark.parametrize("progress, expected", [
    (100, TrackStatus.ON_TRACK),
    (95, TrackStatus.ON_TRACK),
    (90, TrackStatus.ON_TRACK),
    (89.99, TrackStatus.OFF_TRACK),
    (80, TrackStatus.OFF_TRACK),
    (70, TrackStatus.OFF_TRACK),
    (69.9, TrackStatus.AT_RISK),
    (40, TrackStatus.AT_RISK),
    (0, TrackStatus.AT_RISK),
    (None, TrackStatus.AT_RISK),
])
def test_track_status_thresholds(progress, expected):
    assert track_status_for(progress) == expected


@pytest.mark.parametrize("text, expected", [
    ("09:00", datetime(2024, 5, 1, 9, 0, tzinfo=UTC)),
    ("9:05:30", datetime(2024, 5, 1, 9, 5, 30, tzinfo=UTC)),
    ("12:30 PM", datetime(2024, 5, 1, 12, 30, tzinfo=UTC)),
    ("12 am", datetime(2024, 5, 1, 0, 0, tzinfo=UTC)),
    ("2:15pm", datetime(2024, 5, 1, 14, 15, tzinfo=UTC)),
    ("2024-05-02T08:00:00", datetime(2024, 5, 2, 8, 0, tzinfo=UTC)),
    ("2024-05-02T08:00:00+08:00", datetime(2024, 5, 2, 0, 0, tzinfo=UTC)),
])
def test_parse_time_value(text, expected):
    assert parse_time_value(text, "start_time", DAY) == expected


def test_parse_time_value_passthrough():
    aware = datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    assert parse_time_value(aware, "start_time", DAY) == datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
    assert parse_time_value(None, "start_time", DAY) is None
    assert parse_time_value("  ", "start_time", DAY) is None


def test_parsed_times_are_aware_utc():
    """时刻和无时区的 ISO 时间都按 UTC 解释，结果可以直接落库和比较"""
    for text in ("09:00", "2:30 PM", "2024-05-01T09:00:00", "2024-05-01T11:00:00+02:00"):
        parsed = parse_time_value(text, "start_time", DAY)
        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    start = parse_time_value("2024-05-01T11:00:00+02:00", "start_time", DAY)
    end = parse_time_value("12:30", "end_time", DAY)
    assert derive_reported_hours(start, end, None) == 3.5


@pytest.mark.parametrize("text", ["noon", "24:00", "13 PM", "9:75"])
def test_parse_time_value_rejects_garbage(text):
    with pytest.raises(ValidationException) as exc_info:
        parse_time_value(text, "end_time", DAY)
    assert "end_time" in exc_info.value.message


def test_reported_hours_from_time_pair():
    start = datetime(2024, 5, 1, 9, 0)
    assert derive_reported_hours(start, datetime(2024, 5, 1, 12, 30), None) == 3.5
    assert derive_reported_hours(start, start, None) == 0
    # 20 分钟 = 0.333... 小时
    assert derive_reported_hours(start, datetime(2024, 5, 1, 9, 20), None) == 0.33
    # 起止时间优先于 hours_worked
    assert derive_reported_hours(start, datetime(2024, 5, 1, 10, 0), 7) == 1.0


def test_reported_hours_from_hours_worked():
    assert derive_reported_hours(None, None, 8) == 8.0
    assert derive_reported_hours(None, None, 0) == 0
    assert derive_reported_hours(None, None, 1.005) == 1.01
    assert derive_reported_hours(None, None, 24) == 24.0


@pytest.mark.parametrize("start, end, hours_worked", [
    (datetime(2024, 5, 1, 9, 0), None, None),
    (None, datetime(2024, 5, 1, 9, 0), 3),
    (datetime(2024, 5, 1, 12, 0), datetime(2024, 5, 1, 9, 0), None),
    (datetime(2024, 5, 1, 0, 0), datetime(2024, 5, 2, 0, 30), None),
    (None, None, None),
    (None, None, -0.5),
    (None, None, 24.5),
])
def test_reported_hours_rejections(start, end, hours_worked):
    with pytest.raises(ValidationException):
        derive_reported_hours(start, end, hours_worked)


def test_reported_hours_respects_configured_limit():
    with pytest.raises(ValidationException):
        derive_reported_hours(None, None, 10, max_hours=8)


def test_settlement_totals_round_half_up():
    assert settlement_totals([3.5], 20) == (3.5, 70.0)
    assert settlement_totals([2.5], 10.01) == (2.5, 25.03)
    assert settlement_totals([0.1, 0.2], 3) == (0.3, 0.9)
    assert settlement_totals([], 50) == (0.0, 0.0)


def test_quantize():
    assert str(quantize(2.675)) == "2.68"
    assert str(quantize(1)) == "1.00"
