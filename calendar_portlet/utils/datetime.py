from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.utils import timezone


def get_tz(tz_id: Optional[str] = None) -> ZoneInfo:
    """
    Retorna el timezone pedido o, si no viene, el oficial del proyecto.
    Un id desconocido cae al de settings (igual que DateTimeZone.forID(null)).
    """
    default_id = getattr(settings, "CALENDAR_TIMEZONE", "UTC")
    if not tz_id:
        return ZoneInfo(default_id)
    try:
        return ZoneInfo(tz_id)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(default_id)


def is_valid_tz(tz_id: str) -> bool:
    try:
        ZoneInfo(tz_id)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def to_aware(dt: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """
    Convierte un datetime naive a aware usando el timezone del proyecto.
    Si ya es aware, lo retorna tal cual.
    """
    if timezone.is_aware(dt):
        return dt
    return dt.replace(tzinfo=tz or get_tz())


def isoformat_z(dt: datetime) -> str:
    """
    Convierte a ISO 8601 (RFC3339-friendly) para Google Calendar.
    """
    return to_aware(dt).isoformat()


def midnight(day: date, tz) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def floor_to_midnight(dt: datetime) -> datetime:
    """Medianoche del mismo día, en el timezone propio del datetime."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def today_and_tomorrow(tz_id: Optional[str] = None):
    """
    Medianoche de hoy y de mañana en el timezone del usuario.
    Se usan solo para marcar eventos de "hoy" en la vista.
    """
    tz = get_tz(tz_id)
    today = timezone.now().astimezone(tz).date()
    return midnight(today, tz), midnight(today + timedelta(days=1), tz)


def local_today(tz_id: Optional[str] = None) -> date:
    return timezone.now().astimezone(get_tz(tz_id)).date()
