import math
import re
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any

_ID_ALPHABET = string.ascii_lowercase + string.digits
_LEADING_FLOAT = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        raise ValueError("Cannot clamp NaN")
    return max(low, min(high, value))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_memory_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"mem_{int(time.time() * 1000)}_{suffix}"


def generate_glimpse_id() -> str:
    return f">gl{secrets.token_hex(4)}"


def to_datetime(raw: Any) -> datetime | None:
    """Decode a stored timestamp: ISO-8601 text, epoch milliseconds, or a datetime."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
    elif isinstance(raw, str):
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp value: {raw!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def parse_leading_float(text: str) -> float | None:
    """Parse the number a reply starts with, ignoring trailing prose."""
    match = _LEADING_FLOAT.match(text or "")
    if not match:
        return None
    value = float(match.group(1))
    if math.isnan(value):
        return None
    return value


def format_number(value: float) -> str:
    return f"{value:g}"
