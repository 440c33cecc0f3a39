"""
Background Scheduler for RentCar
Periodically re-runs car availability reconciliation
"""
import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import pytz

from rentcar.core.config import settings
from rentcar.core.firebase import get_db
from rentcar.core.monitoring import track_job
from rentcar.services.inventory.reconciliation import reconcile_car_availability

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None

SCHEDULER_TIMEZONE = pytz.timezone(settings.TIMEZONE)
RECONCILE_JOB_ID = 'reconcile_inventory'


async def scheduled_reconciliation() -> Dict[str, Any]:
    """Scheduled job: reconcile every car and record the run"""
    db = get_db()
    logger.info("🕐 Scheduled reconciliation started")

    try:
        with track_job(db, RECONCILE_JOB_ID) as counts:
            counts.update(await reconcile_car_availability(db))
    except Exception as e:
        # the job run is already recorded as failed; keep the scheduler alive
        logger.error(f"❌ Scheduled reconciliation failed: {e}")
        return {'status': 'fail', 'error': str(e)}

    logger.info(f"✅ Scheduled reconciliation complete: {counts}")
    return {'status': 'success', **counts}


def init_scheduler() -> AsyncIOScheduler:
    """Create the scheduler and register the reconciliation job"""
    new_scheduler = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE)

    interval = settings.RECONCILE_INTERVAL_MINUTES
    new_scheduler.add_job(
        scheduled_reconciliation,
        IntervalTrigger(minutes=interval),
        id=RECONCILE_JOB_ID,
        name=f'Availability reconciliation (every {interval}m)',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )
    logger.info(f"📅 Scheduled availability reconciliation every {interval} minutes")

    return new_scheduler


def start_scheduler():
    """Start the scheduler if not already running."""
    global scheduler

    if scheduler is None:
        scheduler = init_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("🚀 Background scheduler started")

        for job in scheduler.get_jobs():
            if job.next_run_time:
                logger.info(f"   Next '{job.name}': {job.next_run_time.isoformat()}")
    else:
        logger.info("Scheduler already running")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("🛑 Background scheduler stopped")
    scheduler = None


def get_scheduler_status() -> Dict[str, Any]:
    """
    Get current scheduler status and job info.

    Returns:
        Dictionary with scheduler status including timezone info
    """
    if scheduler is None:
        return {'status': 'not_initialized', 'timezone': str(SCHEDULER_TIMEZONE), 'jobs': []}

    jobs_info = []
    for job in scheduler.get_jobs():
        next_run = job.next_run_time
        jobs_info.append({
            'id': job.id,
            'name': job.name,
            'next_run_utc': next_run.astimezone(pytz.UTC).strftime('%Y-%m-%dT%H:%M:%SZ') if next_run else None,
            'trigger': str(job.trigger)
        })

    return {
        'status': 'running' if scheduler.running else 'stopped',
        'timezone': str(SCHEDULER_TIMEZONE),
        'jobs': jobs_info
    }
