"""Background sweeps over assigned cases and specialist availability."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from triage_config import MonitorSettings
from triage_runtime import Availability, CaseStatus, EscalationCase, Severity, utcnow

from .service import EscalationService, ReassignmentResult

logger = logging.getLogger(__name__)


class PeriodicSweep:
    """Runs an async action every ``interval`` seconds until stopped.

    Stopping never interrupts a sweep halfway: ``stop`` signals the loop and
    waits for the sweep in flight to finish, so nothing is mutated once it
    returns.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], Awaitable[Any]]):
        self.name = name
        self.interval = interval
        self.action = action
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop; no-op if already running."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._stopping), name=f"{self.name}-sweep"
        )
        logger.info("Started %s sweep every %.0fs", self.name, self.interval)

    async def stop(self) -> None:
        """Stop the loop and wait for it to exit."""
        if self._task is None:
            return
        if self._stopping is not None:
            self._stopping.set()
        task, self._task = self._task, None
        await task
        logger.info("Stopped %s sweep", self.name)

    async def _run(self, stopping: asyncio.Event) -> None:
        while not stopping.is_set():
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            if stopping.is_set():
                break

            try:
                await self.action()
            except Exception:
                logger.exception("%s sweep failed; retrying next interval", self.name)


@dataclass
class SweepReport:
    """Outcome of one reassignment sweep."""

    reassigned: List[str] = field(default_factory=list)
    unassigned: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    assigned_pending: List[str] = field(default_factory=list)


class StalenessMonitor:
    """Detects stuck critical assignments and keeps availability current.

    Two independent sweeps:
    - reassignment: critical cases assigned longer than the stale bound
      are taken back and matched again; pending cases get another try
    - availability: specialists at full load become busy, others available
    """

    def __init__(self, service: EscalationService, settings: Optional[MonitorSettings] = None):
        """Initialize the monitor.

        Args:
            service: Service whose cases and specialists are swept
            settings: Sweep settings, defaults to the service configuration
        """
        self.service = service
        self.settings = settings or service.config.monitor
        self._reassignment = PeriodicSweep(
            "reassignment",
            self.settings.reassignment_interval_seconds,
            self.sweep_reassignments,
        )
        self._availability = PeriodicSweep(
            "availability",
            self.settings.availability_interval_seconds,
            self.sweep_availability,
        )

    @property
    def stale_after(self) -> timedelta:
        return timedelta(minutes=self.settings.critical_stale_minutes)

    @property
    def is_running(self) -> bool:
        return self._reassignment.running or self._availability.running

    def is_stale(self, case: EscalationCase, now: datetime) -> bool:
        """Whether an assigned critical case has waited past the stale bound."""
        return (
            case.status == CaseStatus.ASSIGNED
            and case.severity == Severity.CRITICAL
            and case.assigned_at is not None
            and now - case.assigned_at > self.stale_after
        )

    async def sweep_reassignments(self, now: Optional[datetime] = None) -> SweepReport:
        """Reassign stale critical cases, then retry pending ones.

        Args:
            now: Sweep time, defaults to the current time

        Returns:
            SweepReport listing the affected escalation ids
        """
        now = now or utcnow()
        report = SweepReport()

        for case in self.service.list_cases(status=CaseStatus.ASSIGNED):
            if not self.is_stale(case, now):
                continue

            logger.warning(
                "Critical escalation %s has been with %s for %.0f minutes",
                case.id,
                case.assigned_specialist_id,
                (now - case.assigned_at).total_seconds() / 60,  # type: ignore[operator]
            )
            # Status is re-checked under the case lock
            result = await self.service.reassign(
                case.id, now=now, when=lambda current: self.is_stale(current, now)
            )
            if result == ReassignmentResult.REASSIGNED:
                report.reassigned.append(case.id)
            elif result == ReassignmentResult.UNASSIGNED:
                report.unassigned.append(case.id)
            elif result == ReassignmentResult.FAILED:
                report.failed.append(case.id)

        if self.settings.retry_pending:
            report.assigned_pending = await self.service.retry_pending()

        if report.reassigned or report.unassigned or report.assigned_pending:
            logger.info(
                "Reassignment sweep: %d reassigned, %d unassigned, %d pending assigned",
                len(report.reassigned),
                len(report.unassigned),
                len(report.assigned_pending),
            )
        return report

    async def sweep_availability(self) -> Dict[str, Availability]:
        """Recompute specialist availability from current load."""
        return await self.service.refresh_availability()

    def start_reassignment_sweep(self) -> None:
        self._reassignment.start()

    def start_availability_sweep(self) -> None:
        self._availability.start()

    async def stop_reassignment_sweep(self) -> None:
        await self._reassignment.stop()

    async def stop_availability_sweep(self) -> None:
        await self._availability.stop()

    def start(self) -> None:
        """Start both sweeps."""
        self.start_reassignment_sweep()
        self.start_availability_sweep()

    async def stop(self) -> None:
        """Stop both sweeps; no sweep mutates anything after this returns."""
        await self.stop_reassignment_sweep()
        await self.stop_availability_sweep()
