"""
Monitoring utilities for job runs
"""
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rentcar.core.config import settings
from rentcar.core.firebase import Collections, utcnow

logger = logging.getLogger(__name__)


def validate_environment():
    """
    Validate that Firestore credentials are configured

    Raises:
        SystemExit: If no credentials are available outside mock mode
    """
    if settings.USE_MOCK_FIREBASE:
        logger.info("Mock Firestore enabled - skipping credentials check")
        return

    if os.environ.get('FIREBASE_CREDENTIALS_JSON'):
        logger.info("Firebase credentials loaded from FIREBASE_CREDENTIALS_JSON")
        return

    creds_path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')

    if not creds_path:
        logger.error("GOOGLE_APPLICATION_CREDENTIALS environment variable is not set")
        logger.error("Set it to point to your Firebase service account JSON file:")
        logger.error("  export GOOGLE_APPLICATION_CREDENTIALS=/path/to/firebase-key.json")
        sys.exit(1)

    if not os.path.exists(creds_path):
        logger.error(f"Firebase credentials file not found: {creds_path}")
        sys.exit(1)

    logger.info(f"Firebase credentials loaded from: {creds_path}")


@contextmanager
def acquire_lock(job_name: str, lock_dir: str = "/tmp"):
    """
    Acquire a file lock to prevent concurrent job execution

    Raises:
        RuntimeError: If the job is already running
    """
    lock_file = Path(lock_dir) / f"{job_name}.lock"

    if lock_file.exists():
        try:
            pid = int(lock_file.read_text().strip())
        except ValueError:
            logger.warning(f"Removing unreadable lock file: {lock_file}")
            lock_file.unlink()
        else:
            try:
                os.kill(pid, 0)
            except OSError:
                logger.warning(f"Removing stale lock file: {lock_file} (PID {pid} not found)")
                lock_file.unlink()
            else:
                raise RuntimeError(
                    f"Job {job_name} is already running (PID: {pid}). "
                    f"Lock file: {lock_file}"
                )

    try:
        lock_file.write_text(str(os.getpid()))
        logger.info(f"Lock acquired: {lock_file}")

        yield

    finally:
        if lock_file.exists():
            lock_file.unlink()
            logger.info(f"Lock released: {lock_file}")


def log_job_run(
    db,
    job_name: str,
    status: str,
    started_at: datetime,
    finished_at: datetime,
    counts: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> str:
    """
    Record a job execution in the job_runs collection

    Args:
        db: Firestore client
        job_name: Name of the job (e.g. 'reconcile_inventory')
        status: 'success', 'fail', or 'skipped'
        started_at: Job start timestamp
        finished_at: Job completion timestamp
        counts: Result counters such as {corrected: 2, failed: 0}
        error: Error message if status is 'fail'
        metadata: Additional job-specific metadata

    Returns:
        Document ID of the job run
    """
    duration_ms = int((finished_at - started_at).total_seconds() * 1000)

    job_run = {
        'job_name': job_name,
        'started_at': started_at,
        'finished_at': finished_at,
        'status': status,
        'duration_ms': duration_ms,
        'counts': counts or {},
        'error': error,
        'metadata': metadata or {},
        'created_at': utcnow()
    }

    doc_ref = db.collection(Collections.JOB_RUNS).document()
    doc_ref.set(job_run)

    log_msg = f"Job run logged: {job_name} [{status}] duration={duration_ms}ms"
    if counts:
        log_msg += f" counts={counts}"
    if error:
        log_msg += f" error={error}"
    logger.info(log_msg)

    return doc_ref.id


@contextmanager
def track_job(db, job_name: str, counts: Optional[Dict[str, Any]] = None):
    """
    Context manager recording a job run on exit

    Usage:
        with track_job(db, 'reconcile_inventory') as counts:
            counts.update(reconcile(...))
    """
    started_at = utcnow()
    error_msg = None
    status = 'success'
    counts = {} if counts is None else counts

    try:
        yield counts
    except Exception as e:
        status = 'fail'
        error_msg = str(e)
        logger.error(f"Job {job_name} failed: {error_msg}")
        raise
    finally:
        try:
            log_job_run(
                db,
                job_name=job_name,
                status=status,
                started_at=started_at,
                finished_at=utcnow(),
                counts=counts,
                error=error_msg
            )
        except Exception as e:
            logger.warning(f"Failed to log job run for {job_name}: {e}")
