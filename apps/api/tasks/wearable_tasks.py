"""
Celery tasks for wearable synchronization.

The OAuth callback queues the first sync here so the redirect back to the
web app is not held up by provider calls.
"""
import logging
from typing import Dict
from uuid import UUID

from celery import Task
from sqlalchemy.orm import Session

from core.database import get_db_sync
from models import WearableDevice
from services.wearable_integrations import UnsupportedDeviceError, WearableProviderError
from services.wearable_sync import DeviceNotConnectedError, sync_device
from tasks import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.sync_wearable_device", bind=True)
def sync_wearable_device_task(self: Task, device_id: str) -> Dict:
    """
    Pull today's data for one connected device.

    Args:
        device_id: UUID string of the wearable_devices row

    Returns:
        Dictionary with sync results
    """
    db: Session = get_db_sync()

    try:
        device = db.get(WearableDevice, UUID(device_id))
        if not device:
            return {"status": "error", "error": f"Device {device_id} not found"}

        try:
            synced = sync_device(db, device)
        except (DeviceNotConnectedError, WearableProviderError, UnsupportedDeviceError) as e:
            db.rollback()
            logger.warning(f"Wearable sync for device {device_id} failed: {e}")
            return {"status": "error", "error": str(e)}

        db.commit()
        return {"status": "success", "device_id": device_id, "synced": synced}
    except Exception:
        db.rollback()
        logger.exception(f"Unexpected error syncing device {device_id}")
        raise
    finally:
        db.close()
