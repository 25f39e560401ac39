"""
Single read point for everything the monitor has derived.
"""
import logging
from typing import Any, Dict, List, Optional
from diagnostic_log import DiagnosticLog
from models import HistoryRecord, Severity, StoreView

logger = logging.getLogger(__name__)

class SnapshotStore:
    """Holds the latest StoreView and the diagnostic log.

    The view is immutable and replaced with a single assignment, so a reader
    always sees the snapshot together with the series derived in the same
    cycle. Only the scheduler publishes.
    """

    def __init__(self, log: Optional[DiagnosticLog] = None):
        self.log = log or DiagnosticLog()
        self._view = StoreView()

    @property
    def view(self) -> StoreView:
        return self._view

    def publish(self, view: StoreView) -> bool:
        """
        Replace the current view.

        Views produced by an older cycle than the one already published are
        rejected so a slow cycle can never overwrite a newer result.

        Returns:
            True if the view was installed
        """
        if view.cycle_id < self._view.cycle_id:
            logger.warning("Discarding stale view",
                           extra={"cycle_id": view.cycle_id, "current_cycle_id": self._view.cycle_id})
            return False
        self._view = view
        return True

    def current(self, severity: Optional[Severity] = None) -> Dict[str, Any]:
        """
        Consistent read of the latest state.

        Returns:
            Mapping with snapshot, blocks, chart, network, summary, peers and the
            (optionally filtered) log entries
        """
        view = self._view
        return {
            "snapshot": view.snapshot,
            "blocks": list(view.blocks),
            "chart": list(view.chart),
            "network": list(view.network),
            "summary": view.summary,
            "network_info": view.network_info,
            "peers": list(view.peers),
            "api_stats": view.api_stats,
            "error": view.error,
            "last_error": view.last_error,
            "last_update": view.last_update,
            "log": self.log.list(severity)
        }

    def find_blocks(self, query: Optional[str] = None) -> List[HistoryRecord]:
        """
        Blocks from the last applied cycle, newest first.

        Args:
            query: Case-insensitive fragment of the block index, hash or
                previous hash; None or blank returns every block
        """
        blocks = list(self._view.blocks)
        needle = (query or "").strip().lower()
        if not needle:
            return blocks
        return [
            block for block in blocks
            if needle in str(block.index)
            or needle in block.hash.lower()
            or needle in block.previous_hash.lower()
        ]
