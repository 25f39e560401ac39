"""
Derived chart and network-performance series.

All functions are pure. History is expected as the node supplies it: most
recent block first. Windows are taken from the head of that list and then
reversed so every returned series runs oldest to newest.
"""
from typing import List, Optional, Sequence
from config import CHART_WINDOW, NETWORK_WINDOW, MIN_BLOCK_TIME
from models import ChartPoint, HistoryRecord, NetworkPoint, NetworkSummary

def _recent_window(history: Sequence[HistoryRecord], window: int) -> List[HistoryRecord]:
    """Most recent `window` records in chronological order."""
    if window <= 0:
        return []
    return list(reversed(history[:window]))

def block_time_between(previous: HistoryRecord, record: HistoryRecord) -> float:
    """
    Seconds elapsed between two consecutive blocks.

    Out-of-order timestamps clamp to 0, as does a missing timestamp on
    either side.
    """
    if previous.timestamp is None or record.timestamp is None:
        return 0.0
    elapsed = (record.timestamp - previous.timestamp).total_seconds()
    return max(0.0, elapsed)

def derive_rate(difficulty: float, block_time: float) -> float:
    """Difficulty-weighted rate with a floor on the block time denominator."""
    return max(difficulty, 0) * 1000 / max(block_time, MIN_BLOCK_TIME)

def derive_chart(history: Sequence[HistoryRecord], window: int = CHART_WINDOW) -> List[ChartPoint]:
    """
    Build the difficulty/transactions/reward chart series.

    Args:
        history: Records in descending index order
        window: Number of most recent records to chart

    Returns:
        One ChartPoint per record in the window, oldest first
    """
    points = []
    for order, record in enumerate(_recent_window(history, window)):
        points.append(ChartPoint(
            index=record.index,
            difficulty=record.difficulty,
            tx_count=len(record.transactions or ()),
            reward=record.reward or 0,
            order=order
        ))
    return points

def derive_network(history: Sequence[HistoryRecord], window: int = NETWORK_WINDOW) -> List[NetworkPoint]:
    """
    Build the block time / rate series.

    Each record in the window that has a chronological predecessor inside
    the window yields one point, so a window of n records gives n - 1
    points and histories with fewer than two records give none.
    """
    records = _recent_window(history, window)
    if len(records) < 2:
        return []

    points = []
    for previous, record in zip(records, records[1:]):
        block_time = block_time_between(previous, record)
        points.append(NetworkPoint(
            index=record.index,
            block_time=block_time,
            rate=derive_rate(record.difficulty, block_time)
        ))
    return points

def summarize_network(points: Sequence[NetworkPoint], difficulty: Optional[float] = None) -> NetworkSummary:
    """
    Average block time over the series and the hashrate estimate it implies.

    Args:
        points: Network series as returned by derive_network
        difficulty: Current network difficulty, usually from the latest snapshot
    """
    if not points:
        return NetworkSummary()

    average = sum(p.block_time for p in points) / len(points)
    hashrate = derive_rate(difficulty, average) if difficulty else 0.0
    return NetworkSummary(
        average_block_time=round(average, 3),
        estimated_hashrate=round(hashrate, 2),
        sample_size=len(points)
    )
