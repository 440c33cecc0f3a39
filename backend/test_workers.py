"""
Test the reconciliation worker CLI and scheduler job
"""
from rentcar.core import scheduler
from rentcar.core.firebase import Collections, get_document
from rentcar.workers import reconcile_inventory


def job_runs(db):
    return [doc.to_dict() for doc in db.collection(Collections.JOB_RUNS).stream()]


def test_worker_reconciles_and_records_run(db, make_car, make_booking, monkeypatch):
    make_car('camry', quantity=3, available=3)
    make_booking('camry', status='confirmed')
    monkeypatch.setattr(reconcile_inventory, 'get_db', lambda: db)

    assert reconcile_inventory.main([]) == 0

    assert get_document(db, Collections.CARS, 'camry')['available'] == 2
    runs = job_runs(db)
    assert len(runs) == 1
    assert runs[0]['status'] == 'success'
    assert runs[0]['counts']['corrected'] == 1


def test_worker_dry_run(db, make_car, monkeypatch):
    make_car('camry', quantity=3, available=0)
    monkeypatch.setattr(reconcile_inventory, 'get_db', lambda: db)

    assert reconcile_inventory.main(['--dry-run']) == 0

    assert get_document(db, Collections.CARS, 'camry')['available'] == 0
    assert job_runs(db)[0]['counts']['dry_run'] is True


def test_worker_failure_exit_code(db, monkeypatch):
    async def broken(db_, dry_run=False):
        raise RuntimeError("firestore unavailable")

    monkeypatch.setattr(reconcile_inventory, 'get_db', lambda: db)
    monkeypatch.setattr(reconcile_inventory, 'reconcile_car_availability', broken)

    assert reconcile_inventory.main([]) == 1
    assert job_runs(db)[0]['status'] == 'fail'
    assert job_runs(db)[0]['error'] == "firestore unavailable"


async def test_scheduled_reconciliation(db, make_car, monkeypatch):
    make_car('camry', quantity=2, available=5)
    monkeypatch.setattr(scheduler, 'get_db', lambda: db)

    result = await scheduler.scheduled_reconciliation()

    assert result['status'] == 'success'
    assert result['corrected'] == 1
    assert get_document(db, Collections.CARS, 'camry')['available'] == 2


def test_scheduler_registers_reconcile_job():
    new_scheduler = scheduler.init_scheduler()

    job = new_scheduler.get_job(scheduler.RECONCILE_JOB_ID)
    assert job is not None
    assert job.max_instances == 1
