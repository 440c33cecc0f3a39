"""
Job endpoints for external schedulers (Cloud Scheduler, cron)
Protected by the X-Cron-Secret header
"""
from fastapi import APIRouter, HTTPException, status, Depends
import logging

from rentcar.core.firebase import get_db
from rentcar.core.monitoring import track_job
from rentcar.core.security import verify_cron_secret
from rentcar.services.inventory import reconcile_car_availability

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reconcile", dependencies=[Depends(verify_cron_secret)])
async def run_reconciliation(dry_run: bool = False, db=Depends(get_db)):
    """Reconcile every car's availability and record the run in job_runs"""
    try:
        with track_job(db, "reconcile_inventory") as counts:
            counts.update(await reconcile_car_availability(db, dry_run=dry_run))
        return {"status": "success", **counts}
    except Exception as e:
        logger.error(f"Reconciliation job failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Reconciliation failed: {str(e)}"
        )
