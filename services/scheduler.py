"""
Background Job Scheduler - Runs the periodic status sweeps.

Jobs:
- expire_quotes: sent quotes past their valid_until date become expired
- mark_overdue_invoices: sent invoices past their due date become overdue

The scheduler runs in a daemon thread started by the application factory
when SCHEDULER_ENABLED is set. Job status is reported by /api/metrics.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, Callable

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler = None


class BackgroundScheduler:
    """Simple background scheduler for running periodic tasks."""

    def __init__(self, poll_seconds: int = 10):
        self.jobs: Dict[str, Dict] = {}
        self.running = False
        self.poll_seconds = poll_seconds
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()

    def add_job(self, job_id: str, func: Callable, interval_seconds: int,
                run_immediately: bool = False, kwargs: Dict = None):
        """
        Add a job to the scheduler.

        Args:
            job_id: Unique identifier for the job
            func: Function to call
            interval_seconds: How often to run (in seconds)
            run_immediately: Whether the first run is due straight away
            kwargs: Keyword arguments to pass to the function
        """
        first_run = datetime.utcnow()
        if not run_immediately:
            first_run += timedelta(seconds=interval_seconds)

        with self._lock:
            self.jobs[job_id] = {
                'func': func,
                'interval': interval_seconds,
                'kwargs': kwargs or {},
                'last_run': None,
                'next_run': first_run,
                'run_count': 0,
                'last_result': None,
                'last_error': None,
            }
        logger.info(f"Added job '{job_id}' with interval {interval_seconds}s")

    def get_job_status(self) -> Dict[str, Any]:
        """Get status of all jobs."""
        with self._lock:
            return {
                job_id: {
                    'interval': job['interval'],
                    'last_run': job['last_run'].isoformat() if job['last_run'] else None,
                    'next_run': job['next_run'].isoformat() if job['next_run'] else None,
                    'run_count': job['run_count'],
                    'last_result': job['last_result'],
                    'last_error': job['last_error'],
                }
                for job_id, job in self.jobs.items()
            }

    def start(self):
        """Start the scheduler in a background thread."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name='tradeflow-scheduler', daemon=True)
        self._thread.start()
        logger.info("Background scheduler started")

    def stop(self):
        """Stop the scheduler."""
        self.running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        logger.info("Background scheduler stopped")

    def _execute(self, job_id: str, job: Dict) -> bool:
        """Run one job and record the outcome."""
        started = datetime.utcnow()
        try:
            logger.debug(f"Running job '{job_id}'")
            result = job['func'](**job['kwargs'])
        except Exception as e:
            # A failing sweep must not kill the scheduler thread
            logger.error(f"Job '{job_id}' failed: {e}", exc_info=True)
            with self._lock:
                job['last_error'] = str(e)
                job['next_run'] = started + timedelta(seconds=job['interval'])
            return False

        with self._lock:
            job['last_run'] = started
            job['next_run'] = started + timedelta(seconds=job['interval'])
            job['run_count'] += 1
            job['last_result'] = result
            job['last_error'] = None
        return True

    def _run_loop(self):
        """Main scheduler loop."""
        while self.running and not self._stop_event.is_set():
            now = datetime.utcnow()
            with self._lock:
                due = [(job_id, job) for job_id, job in self.jobs.items()
                       if job['next_run'] and now >= job['next_run']]

            for job_id, job in due:
                self._execute(job_id, job)

            self._stop_event.wait(timeout=self.poll_seconds)

    def run_job_now(self, job_id: str) -> bool:
        """Manually trigger a job to run immediately."""
        with self._lock:
            job = self.jobs.get(job_id)
        if job is None:
            return False
        return self._execute(job_id, job)


def get_scheduler() -> BackgroundScheduler:
    """Get or create the global scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler()
    return _scheduler


# =============================================================================
# SCHEDULED JOBS
# =============================================================================

def _sweep(app, sweep: Callable) -> int:
    from database.connection import get_db_session

    with app.app_context():
        with get_db_session() as session:
            return sweep(session)


def expire_quotes_job(app) -> int:
    """Expire sent quotes whose validity has run out."""
    from services.workflow import expire_quotes
    return _sweep(app, expire_quotes)


def mark_overdue_invoices_job(app) -> int:
    """Flag sent invoices past their due date as overdue."""
    from services.workflow import mark_overdue_invoices
    return _sweep(app, mark_overdue_invoices)


def init_scheduler(app) -> BackgroundScheduler:
    """Register the sweeps on the global scheduler and start it."""
    scheduler = get_scheduler()
    interval = app.config.get('SCHEDULER_INTERVAL_SECONDS', 3600)

    scheduler.add_job('expire_quotes', expire_quotes_job, interval_seconds=interval,
                      run_immediately=True, kwargs={'app': app})
    scheduler.add_job('mark_overdue_invoices', mark_overdue_invoices_job, interval_seconds=interval,
                      run_immediately=True, kwargs={'app': app})

    scheduler.start()
    logger.info("Scheduler initialized with status sweeps")
    return scheduler
