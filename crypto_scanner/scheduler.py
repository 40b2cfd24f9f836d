"""Scheduler - drives the baseline, summary and alert-check cadences.

Two daemon threads, one per cadence, each sleeping on its own stop event, so
a slow market fetch in one never delays the other.
"""

import logging
import threading
from datetime import date, datetime, time
from typing import Callable, Dict, List, Optional

from .alerting.messages import format_degraded
from .baseline import BaselineManager
from .clock import Clock, minute_of
from .config import settings
from .drift import AlertEngine
from .errors import DataSourceError, PersistenceError
from .models import Trigger
from .summary import SummaryGenerator

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs scheduled operations, isolating each tick's failures."""

    def __init__(
        self,
        manager: BaselineManager,
        engine: AlertEngine,
        summary: SummaryGenerator,
        clock: Clock,
        notifier,
        baseline_time: Optional[time] = None,
        summary_time: Optional[time] = None,
        tick_seconds: Optional[float] = None,
        check_interval_seconds: Optional[float] = None,
        error_alert_threshold: Optional[int] = None,
    ):
        self.manager = manager
        self.engine = engine
        self.summary = summary
        self.clock = clock
        self.notifier = notifier
        self.baseline_time = minute_of(baseline_time or settings.baseline_time)
        self.summary_time = minute_of(summary_time or settings.summary_time)
        self.tick_seconds = tick_seconds or settings.tick_seconds
        self.check_interval_seconds = check_interval_seconds or settings.check_interval_seconds
        self.error_alert_threshold = error_alert_threshold or settings.error_alert_threshold

        self.last_summary_date: Optional[date] = None
        self.last_check_at: Optional[datetime] = None
        self.last_check_ok: Optional[bool] = None

        self._consecutive_errors: Dict[str, int] = {}
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    def start(self):
        """Start both cadences on background threads."""
        self._stop.clear()
        logger.info(
            f"Starting scheduler (baseline {self.baseline_time:%H:%M}, summary {self.summary_time:%H:%M} "
            f"{self.clock.tz.key}; clock tick {self.tick_seconds}s, check every {self.check_interval_seconds}s)"
        )
        self._threads = [
            threading.Thread(
                target=self._loop, args=(self.tick_seconds, self.on_clock_tick),
                name="clock-tick", daemon=True,
            ),
            threading.Thread(
                target=self._loop, args=(self.check_interval_seconds, self.on_check_tick),
                name="alert-check", daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self, timeout: Optional[float] = 5.0):
        self._stop.set()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout)
        self._threads = []

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called. Returns True once stopped."""
        return self._stop.wait(timeout)

    @property
    def running(self) -> bool:
        return not self._stop.is_set() and any(t.is_alive() for t in self._threads)

    def _loop(self, interval: float, tick: Callable[[], None]):
        while not self._stop.is_set():
            tick()
            self._stop.wait(interval)

    def on_clock_tick(self):
        """Fire the daily summary and daily baseline when their minute comes round."""
        now = self.clock.now()
        today = now.date()
        minute = minute_of(now)

        # Summary first: when both share a minute it reports on the outgoing baseline.
        if minute == self.summary_time and self.last_summary_date != today:
            if self._run_isolated("summary", self.summary.run):
                self.last_summary_date = today

        if minute == self.baseline_time:
            baseline = self.manager.baseline
            if baseline is None or baseline.date != today:
                self._run_isolated("baseline", lambda: self.manager.set_baseline(Trigger.SCHEDULED))

    def on_check_tick(self):
        self.last_check_ok = self._run_isolated("check", self.engine.check)
        self.last_check_at = self.clock.now()

    def _run_isolated(self, name: str, operation: Callable[[], object]) -> bool:
        """Run one scheduled operation; never let its failure escape the tick."""
        try:
            operation()
        except DataSourceError as e:
            logger.warning(f"{name}: market data unavailable, will retry next tick: {e}")
            self._record_failure(name, e)
            return False
        except PersistenceError as e:
            logger.critical(f"{name}: STATE NOT PERSISTED, in-memory state is ahead of the store: {e}")
            self._record_failure(name, e)
            return False
        except Exception as e:
            logger.error(f"{name}: unexpected error: {e}", exc_info=True)
            self._record_failure(name, e)
            return False

        failures = self._consecutive_errors.pop(name, 0)
        if failures:
            logger.info(f"{name} recovered after {failures} consecutive error(s)")
        return True

    def _record_failure(self, name: str, error: Exception):
        failures = self._consecutive_errors.get(name, 0) + 1
        self._consecutive_errors[name] = failures
        if failures == self.error_alert_threshold:
            logger.critical(f"{name}: {failures} consecutive failures")
            self.notifier.send(format_degraded(name, failures, error))
