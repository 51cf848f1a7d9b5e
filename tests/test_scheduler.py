"""
Tests for the background scheduler and the sweep jobs
"""
import pytest
from datetime import datetime, timedelta

from services.scheduler import BackgroundScheduler, expire_quotes_job, mark_overdue_invoices_job


@pytest.mark.unit
class TestBackgroundScheduler:
    """Tests for job registration and execution"""

    def test_add_job_schedules_first_run(self):
        """Test that jobs run after one interval unless asked to run now"""
        scheduler = BackgroundScheduler()
        scheduler.add_job('later', lambda: 1, interval_seconds=60)
        scheduler.add_job('now', lambda: 1, interval_seconds=60, run_immediately=True)

        status = scheduler.get_job_status()
        later = datetime.fromisoformat(status['later']['next_run'])
        now = datetime.fromisoformat(status['now']['next_run'])
        assert later - now >= timedelta(seconds=59)
        assert status['later']['run_count'] == 0

    def test_run_job_now_records_result(self):
        """Test that a manual run records its result"""
        scheduler = BackgroundScheduler()
        scheduler.add_job('sum', lambda a, b: a + b, interval_seconds=60, kwargs={'a': 2, 'b': 3})

        assert scheduler.run_job_now('sum') is True
        status = scheduler.get_job_status()['sum']
        assert status['run_count'] == 1
        assert status['last_result'] == 5
        assert status['last_run'] is not None
        assert status['last_error'] is None

    def test_failing_job_records_error(self):
        """Test that a failing job is recorded and not counted"""
        def broken():
            raise RuntimeError('database unavailable')

        scheduler = BackgroundScheduler()
        scheduler.add_job('broken', broken, interval_seconds=60)

        assert scheduler.run_job_now('broken') is False
        status = scheduler.get_job_status()['broken']
        assert status['run_count'] == 0
        assert status['last_error'] == 'database unavailable'

    def test_run_unknown_job(self):
        """Test that unknown jobs report False"""
        assert BackgroundScheduler().run_job_now('missing') is False

    def test_start_and_stop(self):
        """Test that the scheduler thread starts and stops"""
        scheduler = BackgroundScheduler(poll_seconds=0.01)
        calls = []
        scheduler.add_job('tick', lambda: calls.append(1), interval_seconds=3600, run_immediately=True)

        scheduler.start()
        try:
            assert scheduler.running is True
        finally:
            scheduler.stop()
        assert scheduler.running is False


@pytest.mark.integration
class TestSweepJobs:
    """Tests for the scheduled status sweeps"""

    def test_expire_quotes_job(self, app, auth_client, create_quote):
        """Test that the expiry job runs inside the app"""
        quote = create_quote(valid_until='2020-01-01')
        auth_client.post(f"/api/quotes/{quote['id']}/send")

        assert expire_quotes_job(app) == 1
        assert auth_client.get(f"/api/quotes/{quote['id']}").get_json()['quote']['status'] == 'expired'

    def test_mark_overdue_invoices_job(self, app, sent_invoice):
        """Test that the overdue job leaves invoices inside their terms alone"""
        assert mark_overdue_invoices_job(app) == 0
