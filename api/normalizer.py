"""
Normalization of raw node payloads into canonical records.

Every function here is total: a missing key, a None, a wrong type or a
negative count is replaced by the documented default instead of raising.
"""
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from config import DEFAULT_STATS, DEFAULT_NETWORK_INFO, DEFAULT_API_STATS
from models import (
    Snapshot, HistoryRecord, Transaction, NetworkInfo, ApiStats, utc_now
)
from peer_model import PeerInfo, PeerInfoCollection
from utils import parse_timestamp

logger = logging.getLogger(__name__)

def _as_mapping(raw: Any) -> Mapping[str, Any]:
    return raw if isinstance(raw, Mapping) else {}

def _number(value: Any, default: float = 0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number

def _count(value: Any, default: int = 0) -> int:
    """Non-negative integer, defaulting on anything unusable."""
    return max(int(_number(value, default)), 0)

def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)

def normalize(raw: Any, fetched_at: Optional[datetime] = None) -> Snapshot:
    """
    Map a /api/blockchain/stats payload to a Snapshot.

    Args:
        raw: Decoded JSON body, possibly missing any key
        fetched_at: Time the payload was received (defaults to now)

    Returns:
        Snapshot with defaulted fields
    """
    data = _as_mapping(raw)
    return Snapshot(
        height=_count(data.get("height"), DEFAULT_STATS["height"]),
        difficulty=max(_number(data.get("difficulty"), DEFAULT_STATS["difficulty"]), 0),
        mempool_size=_count(data.get("mempool_size"), DEFAULT_STATS["mempool_size"]),
        total_blocks=_count(data.get("total_blocks"), DEFAULT_STATS["total_blocks"]),
        fetched_at=fetched_at or utc_now()
    )

def normalize_transaction(raw: Any) -> Transaction:
    data = _as_mapping(raw)
    amount = data.get("amount")
    return Transaction(
        hash=_optional_str(data.get("hash")),
        sender=_optional_str(data.get("from", data.get("sender"))),
        recipient=_optional_str(data.get("to", data.get("recipient"))),
        amount=_number(amount) if amount is not None else None
    )

def normalize_record(raw: Any) -> HistoryRecord:
    """Map one entry of the blocks page to a HistoryRecord."""
    data = _as_mapping(raw)
    transactions = data.get("transactions")
    if not isinstance(transactions, list):
        transactions = []

    return HistoryRecord(
        index=int(_number(data.get("index", data.get("height")), 0)),
        hash=str(data.get("hash") or ""),
        previous_hash=str(data.get("previous_hash", data.get("previousHash")) or ""),
        timestamp=parse_timestamp(data.get("timestamp")),
        difficulty=_number(data.get("difficulty"), 0),
        nonce=int(_number(data.get("nonce"), 0)),
        reward=_number(data.get("reward"), 0),
        transactions=tuple(normalize_transaction(tx) for tx in transactions)
    )

def normalize_history(raw: Any) -> List[HistoryRecord]:
    """
    Map a /api/blockchain/blocks payload to a list of HistoryRecords.

    Upstream order (descending index) is preserved. Entries that are not
    objects are skipped and repeated indices keep their first occurrence.
    """
    if isinstance(raw, list):
        blocks = raw
    else:
        blocks = _as_mapping(raw).get("blocks")
        if not isinstance(blocks, list):
            blocks = []

    records = []
    seen = set()
    for entry in blocks:
        if not isinstance(entry, Mapping):
            logger.debug("Skipping non-object block entry", extra={"entry_type": type(entry).__name__})
            continue
        record = normalize_record(entry)
        if record.index in seen:
            logger.warning("Duplicate block index in history page", extra={"index": record.index})
            continue
        seen.add(record.index)
        records.append(record)
    return records

def normalize_network_info(raw: Any) -> NetworkInfo:
    data = _as_mapping(raw)
    version = data.get("protocol_version")
    return NetworkInfo(
        protocol_version=str(version) if version not in (None, "") else DEFAULT_NETWORK_INFO["protocol_version"],
        peer_count=_count(data.get("peer_count"), DEFAULT_NETWORK_INFO["peer_count"])
    )

def normalize_peers(raw: Any) -> List[PeerInfo]:
    """Map a /api/network/peers payload to a de-duplicated peer list."""
    if isinstance(raw, list):
        peers = raw
    else:
        peers = _as_mapping(raw).get("peers")
        if not isinstance(peers, list):
            peers = []

    collection = PeerInfoCollection()
    for peer in peers:
        collection.add_peer(PeerInfo.from_api_data(peer))
    return collection.as_list()

def normalize_api_stats(raw: Any) -> ApiStats:
    data: Dict[str, Any] = {**DEFAULT_API_STATS, **_as_mapping(raw)}
    return ApiStats(
        total_requests=_count(data.get("total_requests")),
        successful_requests=_count(data.get("successful_requests")),
        failed_requests=_count(data.get("failed_requests")),
        uptime_seconds=_count(data.get("uptime_seconds")),
        blocks_mined=_count(data.get("blocks_mined")),
        is_mining=bool(data.get("is_mining"))
    )
