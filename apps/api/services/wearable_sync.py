"""
Wearable Data Sync

Moves provider data into the local tables:

- sync_device: pull today's data for a connected device and upsert it
- connect_device: store encrypted tokens after an OAuth callback
- store_uploaded_rows: manual imports (Apple Health exports and the like)

Re-syncing the same day updates the rows it wrote before instead of
duplicating them: synced activities are keyed by (user, type, timestamp,
sync note) and sleep sessions by (user, device, bed time).
"""
import logging
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

import requests
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from models import Activity, HeartRateData, SleepData, WearableDevice, utcnow
from schemas import ActivityUploadRow, HeartRateUploadRow, SleepUploadRow
from services.token_encryption import decrypt_token, encrypt_token
from services.wearable_integrations import (
    DEVICE_NAMES,
    ActivityRecord,
    SleepRecord,
    TokenSet,
    WearableProviderError,
    get_integration,
)

logger = logging.getLogger(__name__)

SYNCED_FEELING = "😊"

_UPLOAD_ADAPTERS = {
    "sleep": TypeAdapter(List[SleepUploadRow]),
    "heartrate": TypeAdapter(List[HeartRateUploadRow]),
    "activities": TypeAdapter(List[ActivityUploadRow]),
}


class DeviceNotConnectedError(RuntimeError):
    pass


def sync_note(device_type: str) -> str:
    return f"Synced from {device_type}"


def connect_device(db: Session, user_id: UUID, device_type: str, tokens: TokenSet) -> WearableDevice:
    """Create or reconnect the user's device row with freshly encrypted tokens."""
    device = (
        db.query(WearableDevice)
        .filter(WearableDevice.user_id == user_id, WearableDevice.device_type == device_type)
        .first()
    )
    if device is None:
        device = WearableDevice(
            user_id=user_id,
            device_type=device_type,
            device_name=DEVICE_NAMES.get(device_type, device_type),
        )
        db.add(device)

    device.is_connected = True
    device.access_token = encrypt_token(tokens.access_token)
    device.refresh_token = encrypt_token(tokens.refresh_token)
    device.token_expires_at = tokens.expires_at
    db.flush()

    logger.info(
        "Wearable device connected",
        extra={"extra_fields": {"user_id": str(user_id), "device_type": device_type}},
    )
    return device


def disconnect_device(db: Session, device: WearableDevice) -> None:
    device.is_connected = False
    device.access_token = None
    device.refresh_token = None
    device.token_expires_at = None
    db.flush()


def upsert_activities(db: Session, user_id: UUID, records: Iterable[ActivityRecord]) -> int:
    count = 0
    for record in records:
        note = sync_note(record.device_type)
        activity = (
            db.query(Activity)
            .filter(
                Activity.user_id == user_id,
                Activity.type == record.activity_type,
                Activity.created_at == record.timestamp,
                Activity.notes == note,
            )
            .first()
        )
        if activity is None:
            activity = Activity(
                user_id=user_id,
                type=record.activity_type,
                feeling=SYNCED_FEELING,
                notes=note,
                created_at=record.timestamp,
            )
            db.add(activity)
        activity.duration = record.duration
        activity.steps = record.steps
        activity.device_metadata = record.metadata()
        count += 1
    db.flush()
    return count


def upsert_sleep(db: Session, user_id: UUID, records: Iterable[SleepRecord]) -> int:
    count = 0
    for record in records:
        row = (
            db.query(SleepData)
            .filter(
                SleepData.user_id == user_id,
                SleepData.device_type == record.device_type,
                SleepData.bed_time == record.bed_time,
            )
            .first()
        )
        if row is None:
            row = SleepData(user_id=user_id, device_type=record.device_type, bed_time=record.bed_time)
            db.add(row)
        row.wake_time = record.wake_time
        row.total_sleep_minutes = record.total_sleep_minutes
        row.deep_sleep_minutes = record.deep_sleep_minutes
        row.light_sleep_minutes = record.light_sleep_minutes
        row.rem_sleep_minutes = record.rem_sleep_minutes
        row.restfulness = record.restfulness
        count += 1
    db.flush()
    return count


def sync_device(db: Session, device: WearableDevice, day: Optional[date] = None) -> int:
    """
    Pull one day (default: today, UTC) from the provider and upsert it.

    Returns the number of activity and sleep rows written. Raises
    DeviceNotConnectedError or WearableProviderError.
    """
    access_token = decrypt_token(device.access_token) if device.is_connected else None
    if not access_token:
        raise DeviceNotConnectedError("Device not connected or missing access token")

    day = day or datetime.now(timezone.utc).date()
    integration = get_integration(device.device_type)
    try:
        payload = integration.fetch_day(access_token, day)
    except requests.RequestException as e:
        raise WearableProviderError(f"{device.device_type} request failed: {e}") from e

    synced = upsert_activities(db, device.user_id, payload.activities)
    synced += upsert_sleep(db, device.user_id, payload.sleep)
    device.last_sync_at = utcnow()
    db.flush()

    logger.info(
        "Wearable sync complete",
        extra={"extra_fields": {"device_id": str(device.id), "device_type": device.device_type, "synced": synced}},
    )
    return synced


def store_uploaded_rows(db: Session, user_id: UUID, device_type: str, data_type: str, data: list) -> int:
    """
    Validate and insert manually uploaded rows. Raises pydantic.ValidationError
    when any row is malformed; nothing is written in that case.
    """
    rows = _UPLOAD_ADAPTERS[data_type].validate_python(data)

    for row in rows:
        if data_type == "sleep":
            db.add(SleepData(user_id=user_id, device_type=device_type, **row.model_dump()))
        elif data_type == "heartrate":
            db.add(HeartRateData(user_id=user_id, device_type=device_type, **row.model_dump()))
        else:
            db.add(Activity(
                user_id=user_id,
                type=row.type,
                duration=row.duration,
                steps=row.steps,
                feeling=row.feeling or SYNCED_FEELING,
                notes=f"Imported from {device_type}",
                device_metadata={
                    "device_type": device_type,
                    "heart_rate": row.heart_rate,
                    "calories_burned": row.calories_burned,
                    "distance": row.distance,
                },
            ))
    db.flush()
    return len(rows)
