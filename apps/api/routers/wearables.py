"""
Wearable Devices Router

Connect flow:
1. POST /connect returns the provider authorize URL with a signed state
2. Provider redirects to /{provider}/callback; the state names the user
3. Tokens are encrypted and stored, then an initial sync is queued

Also: manual sync, disconnect, manual upload and sleep / heart-rate reads.
Callbacks always redirect back to the web app, never return provider errors.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.config import settings
from core.database import get_db
from models import HeartRateData, SleepData, User, WearableDevice
from schemas import (
    HeartRateDataResponse,
    MessageResponse,
    SleepDataResponse,
    WearableConnectRequest,
    WearableConnectResponse,
    WearableDeviceResponse,
    WearableSyncResponse,
    WearableUploadRequest,
    WearableUploadResponse,
)
from services.oauth_state import PURPOSE_WEARABLE, create_oauth_state, verify_oauth_state
from services.wearable_integrations import (
    CONNECTABLE_DEVICE_TYPES,
    UnsupportedDeviceError,
    WearableProviderError,
    get_integration,
)
from services.wearable_sync import (
    DeviceNotConnectedError,
    connect_device,
    disconnect_device,
    store_uploaded_rows,
    sync_device,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wearables", tags=["wearables"])

MASK = "***"


def _masked(device: WearableDevice) -> WearableDeviceResponse:
    return WearableDeviceResponse.model_validate(device).model_copy(update={
        "access_token": MASK if device.access_token else None,
        "refresh_token": MASK if device.refresh_token else None,
    })


def _activity_redirect(key: str, value: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.WEB_APP_BASE_URL}/activity?{key}={value}",
        status_code=status.HTTP_302_FOUND,
    )


def _owned_device(db: Session, device_id: UUID, user_id) -> WearableDevice:
    device = db.query(WearableDevice).filter(
        WearableDevice.id == device_id,
        WearableDevice.user_id == user_id,
    ).first()
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    return device


def _enqueue_initial_sync(device_id: UUID) -> None:
    from tasks.wearable_tasks import sync_wearable_device_task

    try:
        sync_wearable_device_task.delay(str(device_id))
    except Exception as e:
        # The device is connected either way; the user can sync manually.
        logger.warning(f"Could not queue initial sync for device {device_id}: {e}")


def _handle_callback(device_type: str, code: Optional[str], state: Optional[str], db: Session) -> RedirectResponse:
    if not code or not state:
        return _activity_redirect("error", "missing_parameters")

    payload = verify_oauth_state(state, PURPOSE_WEARABLE)
    if not payload or payload.get("device_type") != device_type or not payload.get("user_id"):
        return _activity_redirect("error", "invalid_state")

    try:
        user = db.get(User, UUID(payload["user_id"]))
    except ValueError:
        user = None
    if user is None:
        return _activity_redirect("error", "invalid_state")

    try:
        tokens = get_integration(device_type).exchange_code_for_tokens(code)
    except (requests.RequestException, WearableProviderError) as e:
        logger.error(f"{device_type} callback token exchange failed: {e}")
        return _activity_redirect("error", "connection_failed")

    device = connect_device(db, user.id, device_type, tokens)
    db.commit()
    _enqueue_initial_sync(device.id)
    return _activity_redirect("connected", device_type)


@router.get("", response_model=List[WearableDeviceResponse])
def list_devices(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    devices = (
        db.query(WearableDevice)
        .filter(WearableDevice.user_id == current_user.id)
        .order_by(WearableDevice.created_at.desc())
        .all()
    )
    return [_masked(d) for d in devices]


@router.post("/connect", response_model=WearableConnectResponse)
def connect(
    request: WearableConnectRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    existing = db.query(WearableDevice).filter(
        WearableDevice.user_id == current_user.id,
        WearableDevice.device_type == request.device_type,
    ).first()
    if existing and existing.is_connected:
        raise HTTPException(status_code=400, detail="Device already connected")

    if request.device_type not in CONNECTABLE_DEVICE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported device type: {request.device_type}")

    state = create_oauth_state(PURPOSE_WEARABLE, {
        "user_id": str(current_user.id),
        "device_type": request.device_type,
    })
    return {"auth_url": get_integration(request.device_type).get_auth_url(state)}


@router.get("/fitbit/callback")
def fitbit_callback(
    code: str = Query(None),
    state: str = Query(None),
    db: Session = Depends(get_db),
):
    return _handle_callback("fitbit", code, state, db)


@router.get("/googlefit/callback")
def google_fit_callback(
    code: str = Query(None),
    state: str = Query(None),
    db: Session = Depends(get_db),
):
    return _handle_callback("google_fit", code, state, db)


@router.get("/sleep", response_model=List[SleepDataResponse])
def get_sleep_data(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(SleepData).filter(SleepData.user_id == current_user.id)
    if start_date:
        query = query.filter(SleepData.bed_time >= start_date)
    if end_date:
        query = query.filter(SleepData.bed_time <= end_date)
    return query.order_by(SleepData.bed_time.desc()).all()


@router.get("/heartrate", response_model=List[HeartRateDataResponse])
def get_heart_rate_data(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(HeartRateData).filter(HeartRateData.user_id == current_user.id)
    if start_date:
        query = query.filter(HeartRateData.recorded_at >= start_date)
    if end_date:
        query = query.filter(HeartRateData.recorded_at <= end_date)
    return query.order_by(HeartRateData.recorded_at.desc()).all()


@router.post("/upload", response_model=WearableUploadResponse)
def upload_data(
    request: WearableUploadRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Manual import of exported rows (Apple Health and similar)."""
    try:
        count = store_uploaded_rows(db, current_user.id, request.device_type, request.data_type, request.data)
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {request.data_type} data: {e.error_count()} error(s)")

    return {
        "message": f"Successfully imported {count} {request.data_type} entries",
        "processed_count": count,
    }


@router.post("/{device_id}/sync", response_model=WearableSyncResponse)
def sync(
    device_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    device = _owned_device(db, device_id, current_user.id)
    try:
        synced = sync_device(db, device)
    except DeviceNotConnectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (WearableProviderError, UnsupportedDeviceError) as e:
        logger.error(f"Sync failed for device {device.id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to sync device data")

    return {"message": "Sync completed successfully", "synced_count": synced}


@router.delete("/{device_id}", response_model=MessageResponse)
def disconnect(
    device_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    device = _owned_device(db, device_id, current_user.id)
    disconnect_device(db, device)
    return {"message": "Device disconnected successfully"}
