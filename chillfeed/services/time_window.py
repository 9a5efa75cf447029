from __future__ import annotations

from datetime import datetime, timedelta, timezone

# 固定参数：内容只在 24 小时内可见，不支持运行时配置。
TTL = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """naive 时间按 UTC 解释，统一截断到毫秒精度。"""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """输出形如 `2026-10-19T10:00:00.000Z` 的时间戳。"""

    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def cutoff(now: datetime) -> datetime:
    return now - TTL


def is_visible(timestamp: datetime, now: datetime) -> bool:
    # 恰好满 24 小时即不可见。
    return now - timestamp < TTL


def is_expired(timestamp: datetime, now: datetime) -> bool:
    return not is_visible(timestamp, now)
