"""
Tests for chart and network series derivation.
"""
import math
from datetime import datetime, timedelta, timezone

import pytest

from metrics import derive_chart, derive_network, summarize_network
from models import HistoryRecord, NetworkPoint, Transaction
from normalizer import normalize_history

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _record(index, seconds=None, difficulty=100, transactions=()):
    timestamp = T0 + timedelta(seconds=seconds) if seconds is not None else None
    return HistoryRecord(index=index, timestamp=timestamp, difficulty=difficulty,
                         transactions=tuple(transactions))


@pytest.mark.parametrize("length", [0, 1, 2, 19, 20, 21, 50])
def test_chart_length_is_bounded_by_window(blocks, length):
    history = normalize_history({"blocks": blocks(length)})

    points = derive_chart(history)

    assert len(points) == min(length, 20)
    assert [p.index for p in points] == sorted(p.index for p in points)
    assert [p.order for p in points] == list(range(len(points)))


def test_chart_uses_most_recent_records(blocks):
    history = normalize_history({"blocks": blocks(30)})

    points = derive_chart(history)

    assert points[0].index == 11
    assert points[-1].index == 30


def test_chart_point_fields():
    history = [
        _record(2, 10, difficulty=7, transactions=[Transaction(), Transaction()]),
        HistoryRecord(index=1, difficulty=5),
    ]

    first, second = derive_chart(history)

    assert (first.index, first.tx_count, first.reward) == (1, 0, 0)
    assert (second.index, second.tx_count, second.difficulty) == (2, 2, 7)


@pytest.mark.parametrize("length", [0, 1])
def test_network_needs_two_records(blocks, length):
    assert derive_network(normalize_history({"blocks": blocks(length)})) == []


@pytest.mark.parametrize("length,expected", [(2, 1), (5, 4), (10, 9), (11, 9), (50, 9)])
def test_network_length(blocks, length, expected):
    points = derive_network(normalize_history({"blocks": blocks(length)}))

    assert len(points) == expected
    assert len(points) <= min(length, 10)
    assert [p.index for p in points] == sorted(p.index for p in points)


def test_rate_for_ten_second_blocks():
    history = [_record(2, 10, difficulty=100), _record(1, 0, difficulty=100)]

    (point,) = derive_network(history)

    assert point.index == 2
    assert point.block_time == 10
    assert point.rate == 10000


def test_zero_block_time_uses_floor():
    history = [_record(2, 0, difficulty=500), _record(1, 0, difficulty=500)]

    (point,) = derive_network(history)

    assert point.block_time == 0
    assert point.rate == pytest.approx(5_000_000)


def test_out_of_order_timestamps_clamp_to_zero():
    history = [_record(3, 5), _record(2, 30), _record(1, 0)]

    points = derive_network(history)

    assert [p.block_time for p in points] == [30, 0]
    assert all(p.block_time >= 0 for p in points)
    assert all(math.isfinite(p.rate) and p.rate >= 0 for p in points)


def test_missing_timestamp_gives_zero_block_time():
    history = [_record(3, 20), _record(2), _record(1, 0)]

    points = derive_network(history)

    assert [p.block_time for p in points] == [0, 0]


def test_summarize_network():
    points = [NetworkPoint(index=2, block_time=10, rate=1), NetworkPoint(index=3, block_time=20, rate=1)]

    summary = summarize_network(points, difficulty=300)

    assert summary.average_block_time == 15
    assert summary.estimated_hashrate == 20000
    assert summary.sample_size == 2
    assert summarize_network([], difficulty=300).estimated_hashrate == 0
