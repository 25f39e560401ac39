"""
Utility functions for the TrinityChain Node Monitor.
"""
from typing import Any, Optional, Union
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an upstream block timestamp.

    The node serializes block headers with epoch milliseconds, but proxies and
    older builds hand out ISO-8601 strings, so both are accepted.

    Args:
        value: Epoch milliseconds (int, float or numeric string) or ISO-8601 string

    Returns:
        Timezone-aware datetime, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                logger.debug(f"Unparseable timestamp: {text!r}")
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Timestamp out of range: {value}")
            return None

    return None

def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a datetime to a readable UTC string."""
    if dt is None:
        return "unknown"
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

def format_uptime(seconds: int) -> str:
    """Format uptime seconds into human-readable string."""
    if seconds <= 0:
        return "0m"

    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60

    if days > 0:
        return f"{days}d {hours}h"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    else:
        return f"{minutes}m"

def format_hash(hash_string: Optional[str], length: int = 20) -> str:
    """Shorten a hash for display, keeping both ends."""
    if not hash_string:
        return "N/A"

    if len(hash_string) <= length:
        return hash_string

    start = (length - 3) // 2
    end = length - 3 - start
    return f"{hash_string[:start]}...{hash_string[-end:]}"

def format_number(num: Union[int, float]) -> str:
    """Format large numbers with K/M suffixes."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.2f}M"
    if num >= 1000:
        return f"{num / 1000:.2f}K"
    return f"{num:.2f}" if isinstance(num, float) else str(num)
