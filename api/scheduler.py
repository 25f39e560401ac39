"""
Polling scheduler driving the fetch-normalize-derive cycle.
"""
import asyncio
import dataclasses
import functools
import itertools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from config import (
    POLL_INTERVAL_MS, HISTORY_LIMIT, CHART_WINDOW, NETWORK_WINDOW, IS_PRODUCTION
)
from error_sanitizer import sanitizer
from metrics import derive_chart, derive_network, summarize_network
from models import CycleResult, Severity, SourceResult, StoreView, utc_now
from node_client import NodeClient, NodeClientError
from normalizer import (
    normalize, normalize_history, normalize_network_info, normalize_peers, normalize_api_stats
)
from snapshot_store import SnapshotStore
from utils import format_number

logger = logging.getLogger(__name__)

# Sources that must both succeed for the snapshot and series to be replaced
CRITICAL_SOURCES = ("stats", "history")

SOURCE_LABELS = {
    "stats": "blockchain stats",
    "history": "block history",
    "network_info": "network info",
    "peers": "network peers",
    "api_stats": "API stats",
}

class SchedulerState(Enum):
    """Lifecycle states of the polling scheduler."""
    IDLE = "idle"
    RUNNING = "running"

def _validate_interval(interval_ms: Any) -> int:
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, (int, float)):
        raise ValueError(f"Polling interval must be a number of milliseconds, got {interval_ms!r}")
    if interval_ms <= 0:
        raise ValueError(f"Polling interval must be positive, got {interval_ms}")
    return int(interval_ms)

class PollingScheduler:
    """Periodically polls every node source and publishes the results.

    Cycles never overlap: a timer tick that fires while the previous cycle
    is still waiting on the network is skipped, and a manual trigger joins
    the in-flight cycle instead of starting a second one.
    """

    def __init__(self, client: NodeClient, store: SnapshotStore,
                 interval_ms: int = POLL_INTERVAL_MS,
                 history_limit: int = HISTORY_LIMIT,
                 chart_window: int = CHART_WINDOW,
                 network_window: int = NETWORK_WINDOW,
                 sanitize_errors: bool = IS_PRODUCTION):
        self.client = client
        self.store = store
        self.interval_ms = _validate_interval(interval_ms)
        self.history_limit = history_limit
        self.chart_window = chart_window
        self.network_window = network_window
        self.sanitize_errors = sanitize_errors

        self.state = SchedulerState.IDLE
        self.last_cycle: Optional[CycleResult] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._inflight_generation = 0
        self._cycles: Set[asyncio.Task] = set()
        self._cycle_ids = itertools.count(1)
        # Bumped on stop so cycles started before it are not applied
        self._generation = 0

    @property
    def log(self):
        return self.store.log

    @property
    def running(self) -> bool:
        return self.state == SchedulerState.RUNNING

    @property
    def cycle_in_flight(self) -> bool:
        """True while a cycle whose result will still be applied is running."""
        return (self._inflight is not None and not self._inflight.done()
                and self._inflight_generation == self._generation)

    async def start(self, interval_ms: Optional[int] = None) -> Optional[CycleResult]:
        """
        Start polling: run one cycle immediately, then every interval.

        Args:
            interval_ms: Optional new polling interval

        Returns:
            Result of the immediate cycle, or None if already running
        """
        if self.running:
            logger.warning("Polling already running", extra={"interval_ms": self.interval_ms})
            return None
        if interval_ms is not None:
            self.interval_ms = _validate_interval(interval_ms)

        self.state = SchedulerState.RUNNING
        generation = self._generation
        self.log.append(f"Polling started: {self.client.node_url} every {self.interval_ms}ms", Severity.INFO)

        result = await self.trigger_now()

        # stop() (and possibly a restart) may have happened during the first cycle
        if self.running and generation == self._generation:
            self._arm_timer()
        return result

    def stop(self) -> None:
        """Stop polling. In-flight requests finish but their results are dropped."""
        if not self.running:
            return
        self.state = SchedulerState.IDLE
        self._generation += 1
        self._cancel_timer()
        self.log.append("Polling stopped", Severity.INFO)

    def set_interval(self, interval_ms: int) -> None:
        """Change the polling interval, replacing the running timer if any."""
        self.interval_ms = _validate_interval(interval_ms)
        if self.running:
            self._cancel_timer()
            self._arm_timer()
        self.log.append(f"Polling interval set to {self.interval_ms}ms", Severity.INFO)

    def set_node_url(self, node_url: str) -> None:
        self.client.set_node_url(node_url)
        self.log.append(f"Node URL set to {self.client.node_url}", Severity.INFO)

    async def trigger_now(self) -> CycleResult:
        """Run a cycle now, or wait for the one already in flight.

        A cycle started before the last stop() is not joined: its result will
        be discarded, so a fresh cycle is launched instead.
        """
        if not self.cycle_in_flight:
            self._launch_cycle()
        # shield so a cancelled caller does not cancel the shared cycle
        return await asyncio.shield(self._inflight)

    async def close(self) -> None:
        """Stop polling and wait for any in-flight cycle to settle."""
        self.stop()
        if self._cycles:
            await asyncio.gather(*self._cycles, return_exceptions=True)

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "interval_ms": self.interval_ms,
            "node_url": self.client.node_url,
            "cycle_in_flight": self.cycle_in_flight,
            "last_cycle": self.last_cycle.to_dict() if self.last_cycle else None
        }

    def _arm_timer(self) -> None:
        self._timer_task = asyncio.create_task(self._timer_loop(self.interval_ms / 1000))

    def _cancel_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

    async def _timer_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            if self.cycle_in_flight:
                self.log.append("Skipped poll: previous cycle still in flight", Severity.WARNING)
                continue
            self._launch_cycle()

    def _launch_cycle(self) -> asyncio.Task:
        cycle_id = next(self._cycle_ids)
        self._inflight = asyncio.create_task(self._run_cycle(cycle_id, self._generation))
        self._inflight_generation = self._generation
        self._cycles.add(self._inflight)
        self._inflight.add_done_callback(self._cycles.discard)
        return self._inflight

    async def _run_cycle(self, cycle_id: int, generation: int) -> CycleResult:
        cycle = CycleResult(cycle_id=cycle_id, started_at=utc_now())
        fetchers = {
            "stats": self.client.get_blockchain_stats,
            "history": functools.partial(self.client.get_blocks, self.history_limit),
            "network_info": self.client.get_network_info,
            "peers": self.client.get_network_peers,
            "api_stats": self.client.get_api_stats,
        }

        outcomes = await asyncio.gather(*(self._fetch(name, fetch) for name, fetch in fetchers.items()))
        cycle.results = {outcome.source: outcome for outcome in outcomes}
        cycle.finished_at = utc_now()
        cycle.failed = any(not cycle.results[name].ok for name in CRITICAL_SOURCES)

        if generation != self._generation:
            logger.info("Discarding cycle finished after stop", extra={"cycle_id": cycle_id})
            return cycle

        try:
            cycle.applied = self._apply(cycle)
        except Exception as e:
            logger.error("Failed to apply cycle", extra={"cycle_id": cycle_id, "error": str(e)}, exc_info=True)
            self.log.append(f"Failed to process node data: {self._sanitize(str(e))}", Severity.ERROR)
            cycle.failed = True

        self.last_cycle = cycle
        return cycle

    async def _fetch(self, source: str, fetch: Callable[[], Awaitable[Any]]) -> SourceResult:
        try:
            data = await fetch()
        except NodeClientError as e:
            logger.debug("Source fetch failed", extra={"source": source, "error": str(e)})
            return SourceResult.failure(source, e)
        except Exception as e:
            logger.error("Unexpected error fetching source",
                         extra={"source": source, "error": str(e)}, exc_info=True)
            return SourceResult.failure(source, e)
        return SourceResult.success(source, data)

    def _apply(self, cycle: CycleResult) -> bool:
        results = cycle.results
        updates: Dict[str, Any] = {"cycle_id": cycle.cycle_id}

        for failure in cycle.failures:
            self.log.append(
                f"Failed to fetch {SOURCE_LABELS[failure.source]}: {self._sanitize(failure.error)}",
                Severity.ERROR
            )

        if not cycle.failed:
            snapshot = normalize(results["stats"].data, fetched_at=cycle.finished_at)
            records = normalize_history(results["history"].data)
            network = derive_network(records, self.network_window)
            updates.update(
                snapshot=snapshot,
                blocks=tuple(records),
                chart=tuple(derive_chart(records, self.chart_window)),
                network=tuple(network),
                summary=summarize_network(network, snapshot.difficulty),
                error=False,
                last_error=None,
                last_update=cycle.finished_at
            )
            self.log.append(
                f"Blockchain: Height={snapshot.height}, Difficulty={format_number(snapshot.difficulty)}, "
                f"Mempool={snapshot.mempool_size}",
                Severity.SUCCESS
            )
        else:
            updates.update(
                error=True,
                last_error="; ".join(
                    f"{SOURCE_LABELS[name]}: {self._sanitize(results[name].error)}"
                    for name in CRITICAL_SOURCES if not results[name].ok
                )
            )

        if results["network_info"].ok:
            updates["network_info"] = normalize_network_info(results["network_info"].data)
        if results["peers"].ok:
            updates["peers"] = tuple(normalize_peers(results["peers"].data))
        if results["api_stats"].ok:
            updates["api_stats"] = normalize_api_stats(results["api_stats"].data)

        view: StoreView = dataclasses.replace(self.store.view, **updates)
        return self.store.publish(view)

    def _sanitize(self, message: Optional[str]) -> str:
        return sanitizer.sanitize_error_message(message or "", is_production=self.sanitize_errors)
