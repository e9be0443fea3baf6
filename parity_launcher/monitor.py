"""
Resource monitoring for the parity process.

Reports CPU and memory usage of the running client on demand, and
periodically removes old run history and log entries from the database.
"""

import asyncio
import logging
from datetime import datetime, timedelta

import psutil

from .config import config
from .models import LogEntry, ParityRun

logger = logging.getLogger(__name__)


def get_process_metrics(pid: int | None, started_at: datetime | None = None) -> dict | None:
    """Get current resource usage for a process and its children."""
    if not pid:
        return None

    try:
        proc = psutil.Process(pid)
        cpu_percent = proc.cpu_percent(interval=0.1)
        memory_mb = proc.memory_info().rss / 1024 / 1024

        # Include children
        child_count = 0
        try:
            children = proc.children(recursive=True)
            child_count = len(children)
            for child in children:
                cpu_percent += child.cpu_percent(interval=0.1)
                memory_mb += child.memory_info().rss / 1024 / 1024
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    except psutil.NoSuchProcess:
        logger.warning(f"Process {pid} no longer exists")
        return None
    except psutil.AccessDenied:
        logger.warning(f"Access denied for process {pid}")
        return None

    return {
        "pid": pid,
        "cpu_percent": round(cpu_percent, 1),
        "memory_mb": round(memory_mb, 1),
        "child_processes": child_count,
        "uptime_seconds": (datetime.now() - started_at).total_seconds() if started_at else 0,
    }


class ResourceMonitor:
    """Prunes old launch history in the background."""

    def __init__(self, interval: int = None, retention_days: int = None):
        self._interval = interval or config.monitor_interval
        self._retention_days = retention_days or config.log_retention_days
        self._running = False
        self._task = None

    async def start(self):
        """Start the monitoring loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._monitor_loop())
        logger.info("Resource monitor started")

    async def stop(self):
        """Stop the monitoring loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Resource monitor stopped")

    async def _monitor_loop(self):
        """Main monitoring loop."""
        while self._running:
            try:
                self.cleanup_old_data()
            except Exception as e:
                logger.error(f"Error in monitor loop: {e}")

            await asyncio.sleep(self._interval)

    def cleanup_old_data(self) -> int:
        """Remove log entries and finished runs older than the retention window."""
        cutoff = datetime.now() - timedelta(days=self._retention_days)

        deleted_logs = LogEntry.delete().where(LogEntry.timestamp < cutoff).execute()
        if deleted_logs:
            logger.debug(f"Cleaned up {deleted_logs} old log entries")

        deleted_runs = (
            ParityRun.delete()
            .where(ParityRun.ended_at.is_null(False), ParityRun.ended_at < cutoff)
            .execute()
        )
        if deleted_runs:
            logger.debug(f"Cleaned up {deleted_runs} old parity runs")

        return deleted_logs + deleted_runs
