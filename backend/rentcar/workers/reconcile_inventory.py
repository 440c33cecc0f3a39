"""
Worker: Reconcile Car Availability
Recomputes every car's available count from its active bookings.

Drift creeps in when a booking write succeeds but the availability update
after it fails, or when quantities are edited by hand in the console.

Usage:
    python3 -m rentcar.workers.reconcile_inventory [--dry-run]
"""

import argparse
import asyncio
import logging
import sys

from rentcar.core.firebase import get_db
from rentcar.core.monitoring import acquire_lock, track_job, validate_environment
from rentcar.services.inventory import reconcile_car_availability

logger = logging.getLogger(__name__)

JOB_NAME = "reconcile_inventory"


def main(argv=None):
    """Main entry point"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    parser = argparse.ArgumentParser(
        description="Reconcile car availability with active bookings"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report corrections without writing them"
    )
    args = parser.parse_args(argv)

    logger.info("=" * 60)
    logger.info("RECONCILE INVENTORY JOB")
    if args.dry_run:
        logger.info("DRY RUN MODE - No changes will be made")
    logger.info("=" * 60)

    validate_environment()
    db = get_db()

    try:
        with acquire_lock(JOB_NAME):
            with track_job(db, JOB_NAME) as counts:
                counts.update(asyncio.run(reconcile_car_availability(db, dry_run=args.dry_run)))

        logger.info("=" * 60)
        logger.info("RECONCILE JOB COMPLETED SUCCESSFULLY")
        logger.info(f"Cars checked: {counts['total']}")
        logger.info(f"Corrected: {counts['corrected']}")
        logger.info(f"Unchanged: {counts['unchanged']}")
        logger.info(f"Failed: {counts['failed']}")
        logger.info("=" * 60)

        return 1 if counts['failed'] else 0

    except KeyboardInterrupt:
        logger.warning("Job interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Job failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
