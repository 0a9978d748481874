"""Celery tasks for account teardown.

Tasks:
- accounts.delete_user: delete a user and everything they own
"""

import logging
from typing import Any, Dict

from celery import shared_task

from ..config import get_settings
from ..database import SessionLocal
from ..infrastructure.identity import build_identity_provider
from ..infrastructure.storage import build_storage_adapter
from .service import AccountDeletionError, AccountTeardownService

logger = logging.getLogger(__name__)


@shared_task(name="accounts.delete_user", bind=True)
def delete_user_task(self, user_id: str) -> Dict[str, Any]:
    """Delete a user account asynchronously.

    Args:
        user_id: User to delete

    Returns:
        Dict with the DeletionResult fields plus a status of "completed",
        "not_found" or "failed"
    """
    logger.info(f"Delete user task started for {user_id}", extra={"user_id": user_id})

    settings = get_settings()
    identity_provider = build_identity_provider(settings)
    db = SessionLocal()
    try:
        service = AccountTeardownService(
            db,
            storage=build_storage_adapter(settings),
            identity_provider=identity_provider,
        )
        result = service.delete_user(user_id)
        payload = result.model_dump(mode="json")
        payload["status"] = "completed" if result.success else "not_found"
        return payload
    except AccountDeletionError as e:
        logger.error(f"Delete user task failed for {user_id}", extra={"user_id": user_id, "error": str(e)})
        return {"status": "failed", "success": False, "errors": [str(e)]}
    except Exception as e:
        logger.error(
            f"Delete user task failed for {user_id}",
            exc_info=True,
            extra={"user_id": user_id, "error": str(e)},
        )
        return {"status": "failed", "success": False, "errors": [str(e)]}
    finally:
        db.close()
        if identity_provider is not None:
            identity_provider.close()
