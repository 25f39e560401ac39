"""
Data models for the TrinityChain Node Monitor.
"""
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from utils import format_hash, format_timestamp, format_uptime
from peer_model import PeerInfo

def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None

class Severity(str, Enum):
    """Classification of diagnostic log entries."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

@dataclass(frozen=True)
class Snapshot:
    """Normalized point-in-time summary of ledger state."""
    height: int
    difficulty: float
    mempool_size: int
    total_blocks: int
    fetched_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "height": self.height,
            "difficulty": self.difficulty,
            "mempool_size": self.mempool_size,
            "total_blocks": self.total_blocks,
            "fetched_at": _iso(self.fetched_at)
        }

@dataclass(frozen=True)
class Transaction:
    """A transaction inside a block. Every field may be missing upstream."""
    hash: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None
    amount: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount
        }

@dataclass(frozen=True)
class HistoryRecord:
    """One block of the ledger with its proof-of-work metadata."""
    index: int
    hash: str = ""
    previous_hash: str = ""
    timestamp: Optional[datetime] = None
    difficulty: float = 0
    nonce: int = 0
    reward: float = 0
    transactions: Tuple[Transaction, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "hash": self.hash,
            "hash_display": format_hash(self.hash),
            "previous_hash": self.previous_hash,
            "timestamp": _iso(self.timestamp),
            "time_display": format_timestamp(self.timestamp),
            "difficulty": self.difficulty,
            "nonce": self.nonce,
            "reward": self.reward,
            "transactions": [tx.to_dict() for tx in self.transactions]
        }

@dataclass(frozen=True)
class ChartPoint:
    """Per-block chart sample for difficulty, transaction and reward trends."""
    index: int
    difficulty: float
    tx_count: int
    reward: float
    order: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "difficulty": self.difficulty,
            "tx_count": self.tx_count,
            "reward": self.reward,
            "order": self.order
        }

@dataclass(frozen=True)
class NetworkPoint:
    """Block time and derived rate for one block relative to its predecessor."""
    index: int
    block_time: float
    rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "block_time": self.block_time,
            "rate": self.rate
        }

@dataclass(frozen=True)
class NetworkSummary:
    """Aggregates over the network performance series."""
    average_block_time: float = 0.0
    estimated_hashrate: float = 0.0
    sample_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_block_time": self.average_block_time,
            "estimated_hashrate": self.estimated_hashrate,
            "sample_size": self.sample_size
        }

@dataclass(frozen=True)
class NetworkInfo:
    """Network information reported by the node."""
    protocol_version: str = "1.0.0"
    peer_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol_version": self.protocol_version,
            "peer_count": self.peer_count
        }

@dataclass(frozen=True)
class ApiStats:
    """API-level counters exposed by the node's /stats endpoint."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    uptime_seconds: int = 0
    blocks_mined: int = 0
    is_mining: bool = False

    @property
    def success_rate(self) -> float:
        """Percentage of successful requests, 0 when nothing was served."""
        if self.total_requests <= 0:
            return 0.0
        return round(self.successful_requests / self.total_requests * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "success_rate": self.success_rate,
            "uptime_seconds": self.uptime_seconds,
            "uptime_formatted": format_uptime(self.uptime_seconds),
            "blocks_mined": self.blocks_mined,
            "is_mining": self.is_mining
        }

@dataclass(frozen=True)
class LogEntry:
    """A classified, timestamped diagnostic event."""
    id: int
    message: str
    severity: Severity
    emitted_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "severity": self.severity.value,
            "emitted_at": _iso(self.emitted_at)
        }

@dataclass(frozen=True)
class SourceResult:
    """Outcome of fetching a single upstream source within a cycle."""
    source: str
    ok: bool
    data: Any = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def success(cls, source: str, data: Any) -> 'SourceResult':
        return cls(source=source, ok=True, data=data)

    @classmethod
    def failure(cls, source: str, error: Exception) -> 'SourceResult':
        return cls(source=source, ok=False, error=str(error) or type(error).__name__,
                   error_kind=type(error).__name__)

@dataclass
class CycleResult:
    """Aggregate of every source outcome for one poll cycle."""
    cycle_id: int
    started_at: datetime
    results: Dict[str, SourceResult] = field(default_factory=dict)
    finished_at: Optional[datetime] = None
    failed: bool = False
    applied: bool = False

    @property
    def failures(self) -> List[SourceResult]:
        return [r for r in self.results.values() if not r.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
            "failed": self.failed,
            "applied": self.applied,
            "sources": {
                name: {"ok": r.ok, "error": r.error, "error_kind": r.error_kind}
                for name, r in self.results.items()
            }
        }

@dataclass(frozen=True)
class StoreView:
    """Consistent combination of everything a consumer reads in one go."""
    snapshot: Optional[Snapshot] = None
    blocks: Tuple[HistoryRecord, ...] = ()
    chart: Tuple[ChartPoint, ...] = ()
    network: Tuple[NetworkPoint, ...] = ()
    summary: NetworkSummary = NetworkSummary()
    network_info: NetworkInfo = NetworkInfo()
    peers: Tuple[PeerInfo, ...] = ()
    api_stats: Optional[ApiStats] = None
    error: bool = False
    last_error: Optional[str] = None
    last_update: Optional[datetime] = None
    cycle_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "blocks": [b.to_dict() for b in self.blocks],
            "chart": [p.to_dict() for p in self.chart],
            "network": [p.to_dict() for p in self.network],
            "summary": self.summary.to_dict(),
            "network_info": self.network_info.to_dict(),
            "peers": [p.to_api_response() for p in self.peers],
            "api_stats": self.api_stats.to_dict() if self.api_stats else None,
            "error": self.error,
            "last_error": self.last_error,
            "last_update": _iso(self.last_update),
            "cycle_id": self.cycle_id
        }

def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
