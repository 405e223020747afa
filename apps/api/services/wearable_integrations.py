"""
Wearable Provider Integrations

OAuth handshake and REST polling for the providers we can connect to:

- Fitbit: daily activity summary, individual activities, sleep sessions
- Google Fit: one-day aggregate buckets (steps, active minutes, calories)

Apple Health has no web API; its exports arrive through the upload endpoint.
Garmin and Samsung Health are recognised device types with no connect flow.

Parsing is split from fetching so payload mapping can be tested without HTTP.
"""
import base64
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests

from core.config import settings

logger = logging.getLogger(__name__)

DEVICE_TYPES = ("fitbit", "google_fit", "apple_health", "garmin", "samsung_health")
CONNECTABLE_DEVICE_TYPES = ("fitbit", "google_fit")

DEVICE_NAMES = {
    "fitbit": "Fitbit Device",
    "google_fit": "Google Fit",
    "apple_health": "Apple Health",
    "garmin": "Garmin",
    "samsung_health": "Samsung Health",
}

FITBIT_AUTHORIZE_URL = "https://www.fitbit.com/oauth2/authorize"
FITBIT_TOKEN_URL = "https://api.fitbit.com/oauth2/token"
FITBIT_API_BASE = "https://api.fitbit.com"
FITBIT_SCOPES = ("activity", "heartrate", "sleep", "profile")

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_FIT_AGGREGATE_URL = "https://www.googleapis.com/fitness/v1/users/me/dataset:aggregate"
GOOGLE_FIT_SCOPES = (
    "https://www.googleapis.com/auth/fitness.activity.read",
    "https://www.googleapis.com/auth/fitness.heart_rate.read",
    "https://www.googleapis.com/auth/fitness.sleep.read",
)
ONE_DAY_MS = 86_400_000


class WearableProviderError(RuntimeError):
    """A provider call failed or returned something we cannot use."""


class UnsupportedDeviceError(ValueError):
    pass


@dataclass
class TokenSet:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[datetime]


@dataclass
class ActivityRecord:
    device_type: str
    activity_type: str
    timestamp: datetime
    duration: Optional[int] = None
    steps: Optional[int] = None
    heart_rate: Optional[int] = None
    calories_burned: Optional[float] = None
    distance: Optional[float] = None  # meters

    def metadata(self) -> Dict[str, Any]:
        return {
            "device_type": self.device_type,
            "heart_rate": self.heart_rate,
            "calories_burned": self.calories_burned,
            "distance": self.distance,
        }


@dataclass
class SleepRecord:
    device_type: str
    bed_time: datetime
    wake_time: datetime
    total_sleep_minutes: int
    restfulness: int
    deep_sleep_minutes: Optional[int] = None
    light_sleep_minutes: Optional[int] = None
    rem_sleep_minutes: Optional[int] = None


@dataclass
class SyncPayload:
    activities: List[ActivityRecord] = field(default_factory=list)
    sleep: List[SleepRecord] = field(default_factory=list)


def _parse_provider_time(value: str) -> datetime:
    """Provider timestamps without an offset are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _km_to_m(km: Any) -> Optional[float]:
    if km is None:
        return None
    return float(km) * 1000


def _expires_at(expires_in: Any) -> Optional[datetime]:
    if not expires_in:
        return None
    return datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))


def _token_set(data: Dict) -> TokenSet:
    access_token = data.get("access_token")
    if not access_token:
        raise WearableProviderError("Token response had no access_token")
    return TokenSet(
        access_token=access_token,
        refresh_token=data.get("refresh_token"),
        expires_at=_expires_at(data.get("expires_in")),
    )


# --- payload mapping ---------------------------------------------------------


def parse_fitbit_activities(payload: Dict, day: date) -> List[ActivityRecord]:
    """Daily summary first, then each logged activity (ms durations become minutes)."""
    records: List[ActivityRecord] = []

    summary = payload.get("summary")
    if summary:
        active_minutes = summary.get("activeMinutes")
        if active_minutes is None:
            active_minutes = (summary.get("fairlyActiveMinutes") or 0) + (summary.get("veryActiveMinutes") or 0)
        distances = summary.get("distances") or []
        records.append(ActivityRecord(
            device_type="fitbit",
            activity_type="daily_summary",
            timestamp=_day_start(day),
            duration=int(active_minutes or 0),
            steps=summary.get("steps"),
            heart_rate=summary.get("restingHeartRate"),
            calories_burned=summary.get("caloriesOut"),
            distance=_km_to_m(distances[0].get("distance")) if distances else None,
        ))

    for activity in payload.get("activities") or []:
        start = activity.get("startTime")
        timestamp = _parse_provider_time(f"{day.isoformat()}T{start}") if start else _day_start(day)
        records.append(ActivityRecord(
            device_type="fitbit",
            activity_type=(activity.get("name") or "other").lower(),
            timestamp=timestamp,
            duration=round((activity.get("duration") or 0) / 60000),
            steps=activity.get("steps"),
            calories_burned=activity.get("calories"),
            distance=_km_to_m(activity.get("distance")),
        ))

    return records


def parse_fitbit_sleep(payload: Dict) -> List[SleepRecord]:
    sessions: List[SleepRecord] = []
    for session in payload.get("sleep") or []:
        levels = (session.get("levels") or {}).get("summary") or {}
        efficiency = session.get("efficiency") or 0
        sessions.append(SleepRecord(
            device_type="fitbit",
            bed_time=_parse_provider_time(session["startTime"]),
            wake_time=_parse_provider_time(session["endTime"]),
            total_sleep_minutes=int(session.get("minutesAsleep") or 0),
            deep_sleep_minutes=(levels.get("deep") or {}).get("minutes"),
            light_sleep_minutes=(levels.get("light") or {}).get("minutes"),
            rem_sleep_minutes=(levels.get("rem") or {}).get("minutes"),
            restfulness=round(efficiency / 100 * 10),
        ))
    return sessions


def parse_google_fit_buckets(payload: Dict) -> List[ActivityRecord]:
    """One daily_summary per bucket that carries any steps, minutes or calories."""
    records: List[ActivityRecord] = []
    for bucket in payload.get("bucket") or []:
        record = ActivityRecord(
            device_type="google_fit",
            activity_type="daily_summary",
            timestamp=datetime.fromtimestamp(int(bucket["startTimeMillis"]) / 1000, tz=timezone.utc),
        )
        for dataset in bucket.get("dataset") or []:
            source = dataset.get("dataSourceId") or ""
            for point in dataset.get("point") or []:
                values = point.get("value") or [{}]
                if "step_count" in source:
                    record.steps = values[0].get("intVal")
                elif "active_minutes" in source:
                    record.duration = values[0].get("intVal")
                elif "calories" in source:
                    record.calories_burned = values[0].get("fpVal")
        if record.steps or record.duration or record.calories_burned:
            records.append(record)
    return records


# --- providers ---------------------------------------------------------------


class FitbitIntegration:
    def __init__(self):
        self.client_id = settings.FITBIT_CLIENT_ID or ""
        self.client_secret = settings.FITBIT_CLIENT_SECRET or ""
        self.redirect_uri = f"{settings.API_BASE_URL}/api/wearables/fitbit/callback"

    def get_auth_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(FITBIT_SCOPES),
            "state": state,
        }
        return f"{FITBIT_AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code_for_tokens(self, code: str) -> TokenSet:
        basic = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
        r = requests.post(
            FITBIT_TOKEN_URL,
            headers={"Authorization": f"Basic {basic}"},
            data={
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            timeout=settings.EXTERNAL_API_TIMEOUT,
        )
        if r.status_code >= 400:
            raise WearableProviderError(f"Fitbit token exchange failed ({r.status_code})")
        return _token_set(r.json())

    def _get(self, access_token: str, path: str) -> Dict:
        r = requests.get(
            f"{FITBIT_API_BASE}{path}",
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=settings.EXTERNAL_API_TIMEOUT,
        )
        if r.status_code >= 400:
            raise WearableProviderError(f"Fitbit request {path} failed ({r.status_code})")
        return r.json()

    def get_activity_data(self, access_token: str, day: date) -> List[ActivityRecord]:
        payload = self._get(access_token, f"/1/user/-/activities/date/{day.isoformat()}.json")
        return parse_fitbit_activities(payload, day)

    def get_sleep_data(self, access_token: str, day: date) -> List[SleepRecord]:
        payload = self._get(access_token, f"/1.2/user/-/sleep/date/{day.isoformat()}.json")
        return parse_fitbit_sleep(payload)

    def fetch_day(self, access_token: str, day: date) -> SyncPayload:
        return SyncPayload(
            activities=self.get_activity_data(access_token, day),
            sleep=self.get_sleep_data(access_token, day),
        )


class GoogleFitIntegration:
    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID or ""
        self.client_secret = settings.GOOGLE_CLIENT_SECRET or ""
        self.redirect_uri = f"{settings.API_BASE_URL}/api/wearables/googlefit/callback"

    def get_auth_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(GOOGLE_FIT_SCOPES),
            "state": state,
            "access_type": "offline",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code_for_tokens(self, code: str) -> TokenSet:
        r = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            timeout=settings.EXTERNAL_API_TIMEOUT,
        )
        if r.status_code >= 400:
            raise WearableProviderError(f"Google token exchange failed ({r.status_code})")
        return _token_set(r.json())

    def get_fitness_data(self, access_token: str, start_ms: int, end_ms: int) -> List[ActivityRecord]:
        r = requests.post(
            GOOGLE_FIT_AGGREGATE_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            json={
                "aggregateBy": [
                    {"dataTypeName": "com.google.step_count.delta"},
                    {"dataTypeName": "com.google.active_minutes"},
                    {"dataTypeName": "com.google.calories.expended"},
                ],
                "bucketByTime": {"durationMillis": ONE_DAY_MS},
                "startTimeMillis": start_ms,
                "endTimeMillis": end_ms,
            },
            timeout=settings.EXTERNAL_API_TIMEOUT,
        )
        if r.status_code >= 400:
            raise WearableProviderError(f"Google Fit aggregate failed ({r.status_code})")
        return parse_google_fit_buckets(r.json())

    def fetch_day(self, access_token: str, day: date) -> SyncPayload:
        start = _day_start(day)
        start_ms = int(start.timestamp() * 1000)
        return SyncPayload(activities=self.get_fitness_data(access_token, start_ms, start_ms + ONE_DAY_MS - 1))


def get_integration(device_type: str):
    if device_type == "fitbit":
        return FitbitIntegration()
    if device_type == "google_fit":
        return GoogleFitIntegration()
    raise UnsupportedDeviceError(f"Unsupported device type: {device_type}")
