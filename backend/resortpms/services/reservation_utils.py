"""
预订工具函数 - 确认码、日期解析与区间计算
"""
import math
import secrets
from datetime import datetime, timezone, timedelta
from random import Random
from typing import Optional, Union

# 去除易混淆字符 (0/O, 1/I) 的大写字母与数字
CONFIRMATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 8

DAY = timedelta(days=1)

Instant = Union[datetime, str]

_system_random = secrets.SystemRandom()


def utcnow() -> datetime:
    """当前 UTC 时间（naive，与数据库存储一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_confirmation_code(rng: Optional[Random] = None) -> str:
    """生成 8 位确认码，字符从无歧义字母表中均匀抽取"""
    rng = rng or _system_random
    return "".join(rng.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(CONFIRMATION_CODE_LENGTH))


def parse_instant(value: Optional[Instant]) -> Optional[datetime]:
    """
    解析时间点

    接受 datetime 或 ISO-8601 字符串（允许结尾 Z，允许仅日期），
    带时区的值统一转换为 naive UTC。无法解析时返回 None。
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_valid_date_range(check_in: Optional[Instant], check_out: Optional[Instant]) -> bool:
    """两端均可解析，且离店时间严格晚于入住时间"""
    start = parse_instant(check_in)
    end = parse_instant(check_out)
    if start is None or end is None:
        return False
    return end > start


def calculate_duration(check_in: Instant, check_out: Instant) -> int:
    """
    计算天数/晚数，不足一天按一天计

    Example:
        >>> calculate_duration("2026-02-01T14:00:00Z", "2026-02-05T11:00:00Z")
        4
    """
    start = parse_instant(check_in)
    end = parse_instant(check_out)
    if start is None or end is None:
        raise ValueError(f"Cannot parse interval {check_in!r} - {check_out!r}")
    return math.ceil((end - start) / DAY)
