"""
派生字段计算模块

工时、进度状态和结算金额的纯函数，写路径在落库前调用，
可脱离数据库单独测试。
"""
import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple, Union

from app.core.exceptions import ValidationException
from app.models.task import TrackStatus

TWO_PLACES = Decimal("0.01")

ON_TRACK_THRESHOLD = 90
OFF_TRACK_THRESHOLD = 70

# "14:00"、"14:00:30"、"2 pm"、"02:30 PM"
_CLOCK_PATTERN = re.compile(
    r"^(\d{1,2})(?::(\d{2}))?(?::(\d{2}))?\s*(AM|PM)?$",
    re.IGNORECASE,
)


def quantize(value: Union[Decimal, float, int]) -> Decimal:
    """四舍五入到两位小数"""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def track_status_for(progress_percent: Optional[float]) -> TrackStatus:
    """
    进度百分比映射为进度状态

    [90, 100] -> on_track, [70, 90) -> off_track, [0, 70) -> at_risk
    """
    p = progress_percent or 0
    if p >= ON_TRACK_THRESHOLD:
        return TrackStatus.ON_TRACK
    if p >= OFF_TRACK_THRESHOLD:
        return TrackStatus.OFF_TRACK
    return TrackStatus.AT_RISK


def _parse_clock(value: str, on_date: date) -> Optional[datetime]:
    match = _CLOCK_PATTERN.match(value)
    if not match:
        return None
    hh, mm, ss, meridiem = match.groups()
    hours, minutes, seconds = int(hh), int(mm or 0), int(ss or 0)
    if meridiem:
        if hours < 1 or hours > 12:
            return None
        hours = hours % 12
        if meridiem.upper() == "PM":
            hours += 12
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return datetime.combine(on_date, time(hours, minutes, seconds), tzinfo=timezone.utc)


def _to_utc(value: datetime) -> datetime:
    """无时区的时间视为 UTC，带时区的转换到 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_time_value(
    value: Union[datetime, str, None],
    field_name: str,
    on_date: Optional[date] = None,
) -> Optional[datetime]:
    """
    解析任务起止时间

    支持 datetime、ISO-8601 字符串，以及锚定到 on_date 的当天时刻字符串。
    返回值统一为 UTC 时区的 datetime，无时区的输入按 UTC 解释。
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_utc(value)

    text = str(value).strip()
    if not text:
        return None

    clock = _parse_clock(text, on_date or datetime.now(timezone.utc).date())
    if clock is not None:
        return clock
    try:
        return _to_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationException(f"{field_name} 格式无效: {text}")


def derive_reported_hours(
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    hours_worked: Optional[float],
    max_hours: float = 24,
) -> float:
    """
    计算任务工时

    - 起止时间齐全：max(0, end - start) 小时，保留两位小数；end < start 拒绝
    - 起止时间缺省：使用 hours_worked，必须在 [0, max_hours] 内
    - 只给了起止时间之一，或两条路径都没有值：拒绝
    """
    if (start_time is None) != (end_time is None):
        raise ValidationException("start_time 和 end_time 必须同时提供")

    if start_time is not None and end_time is not None:
        if end_time < start_time:
            raise ValidationException("end_time 不能早于 start_time")
        seconds = max(0.0, (end_time - start_time).total_seconds())
        hours = (Decimal(str(seconds)) / Decimal(3600)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        if hours > Decimal(str(max_hours)):
            raise ValidationException(f"单个任务工时不能超过 {max_hours} 小时")
        return float(hours)

    if hours_worked is None:
        raise ValidationException("缺少工时：请提供 start_time/end_time 或 hours_worked")
    if hours_worked < 0 or hours_worked > max_hours:
        raise ValidationException(f"hours_worked 必须在 0 到 {max_hours} 之间")
    return float(quantize(hours_worked))


def settlement_totals(hours: Iterable[float], hourly_rate: float) -> Tuple[float, float]:
    """汇总结算工时与金额，金额 = 工时 × 时薪，四舍五入到两位小数"""
    total_hours = sum((Decimal(str(h)) for h in hours), Decimal("0"))
    total_amount = quantize(total_hours * Decimal(str(hourly_rate)))
    return float(quantize(total_hours)), float(total_amount)
