"""Celery tasks for the event retention sweeps.

Tasks:
- lifecycle.trash_sweep: move expired events to the trash
- lifecycle.permanent_delete_sweep: delete trashed events past their grace period
- lifecycle.scheduled_deletion: both sweeps with before/after status (daily cron)

Every task opens its own session, returns a JSON-serialisable dict and never
raises: per-event failures are already aggregated in the sweep result, and a
setup failure is reported as status "failed".
"""

import logging
from typing import Any, Dict

from celery import shared_task

from ..config import get_settings
from ..database import SessionLocal
from ..infrastructure.storage import build_storage_adapter
from .service import RetentionSweepService

logger = logging.getLogger(__name__)


def _build_service(db) -> RetentionSweepService:
    settings = get_settings()
    return RetentionSweepService(
        db,
        storage=build_storage_adapter(settings),
        grace_period_days=settings.TRASH_GRACE_PERIOD_DAYS,
        free_plan=settings.FREE_PLAN_NAME,
    )


def _failed(task_name: str, error: Exception) -> Dict[str, Any]:
    logger.error(f"{task_name} task failed", exc_info=True, extra={"error": str(error)})
    return {"status": "failed", "error": str(error), "processed_count": 0}


@shared_task(name="lifecycle.trash_sweep", bind=True)
def trash_sweep_task(self) -> Dict[str, Any]:
    """Run the trash sweep.

    Idempotent: running twice in succession trashes nothing the second time.
    """
    logger.info("Trash sweep task started")
    db = SessionLocal()
    try:
        result = _build_service(db).run_trash_sweep()
        payload = {"status": "completed", **result.model_dump()}
        logger.info("Trash sweep task completed", extra={"processed_count": result.processed_count})
        return payload
    except Exception as e:
        return _failed("Trash sweep", e)
    finally:
        db.close()


@shared_task(name="lifecycle.permanent_delete_sweep", bind=True)
def permanent_delete_sweep_task(self) -> Dict[str, Any]:
    """Run the permanent-delete sweep."""
    logger.info("Permanent-delete sweep task started")
    db = SessionLocal()
    try:
        result = _build_service(db).run_permanent_delete_sweep()
        payload = {"status": "completed", **result.model_dump()}
        logger.info(
            "Permanent-delete sweep task completed",
            extra={"processed_count": result.processed_count},
        )
        return payload
    except Exception as e:
        return _failed("Permanent-delete sweep", e)
    finally:
        db.close()


@shared_task(name="lifecycle.scheduled_deletion", bind=True)
def scheduled_deletion_task(self) -> Dict[str, Any]:
    """Execute the daily scheduled deletion pass.

    Scheduled via Celery Beat (see ``gallery_lifecycle.celery_app``).

    Returns:
        Dict with the report: status before/after, both sweep results,
        total processed and merged errors.
    """
    logger.info("Scheduled deletion task started")
    db = SessionLocal()
    try:
        report = _build_service(db).run_scheduled_deletion()
        payload = report.model_dump(mode="json")
        payload["status"] = "completed" if report.success else "completed_with_errors"
        return payload
    except Exception as e:
        return _failed("Scheduled deletion", e)
    finally:
        db.close()
