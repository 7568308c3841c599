from __future__ import annotations

import logging
import re
from datetime import date
from typing import Dict, Optional

from django.conf import settings

from calendar_portlet.exceptions import InvalidCalendarIdError, MissingSessionStateError
from calendar_portlet.utils.datetime import local_today

logger = logging.getLogger(__name__)

HIDDEN_CALENDARS = "hiddenCalendars"
START_DATE = "startDate"
DAYS = "days"
TIMEZONE = "timezone"

CALENDAR_ID_RE = re.compile(r"[+-]?[0-9]+")


def parse_calendar_id(value) -> int:
    # mismo formato que Long.valueOf: sin espacios, sin "_", solo dígitos ASCII
    if not isinstance(value, str) or not CALENDAR_ID_RE.fullmatch(value):
        raise InvalidCalendarIdError(f"Id de calendario inválido: {value!r}")
    return int(value)


class CalendarSession:
    """
    Estado del calendario guardado en la sesión de Django.

    - Las claves van con namespace por instancia del portlet
    - Todo se guarda JSON-serializable (fechas ISO, ids como string)
    """

    def __init__(self, session, portlet: str = "default"):
        self.session = session
        self.portlet = portlet

    def _key(self, name: str) -> str:
        return f"calendar_portlet.{self.portlet}.{name}"

    def _get(self, name: str, default=None):
        return self.session.get(self._key(name), default)

    def _set(self, name: str, value) -> None:
        self.session[self._key(name)] = value

    def has(self, name: str) -> bool:
        return self._key(name) in self.session

    # -------------------------
    # Calendarios ocultos
    # -------------------------

    @property
    def hidden_calendars(self) -> Dict[int, str]:
        raw = self._get(HIDDEN_CALENDARS) or {}
        return {int(k): v for k, v in raw.items()}

    @hidden_calendars.setter
    def hidden_calendars(self, value: Dict[int, str]) -> None:
        self._set(HIDDEN_CALENDARS, {str(k): v for k, v in value.items()})

    def update_hidden_calendars(
        self,
        hide_calendar: Optional[str] = None,
        show_calendar: Optional[str] = None,
    ) -> Dict[int, str]:
        """
        Aplica hideCalendar y después showCalendar, y persiste el resultado.
        Si el mismo id viene en ambos, queda visible.
        """
        hidden = self.hidden_calendars

        # se parsean ambos antes de tocar la sesión
        hide_id = parse_calendar_id(hide_calendar) if hide_calendar is not None else None
        show_id = parse_calendar_id(show_calendar) if show_calendar is not None else None

        if hide_id is not None:
            hidden[hide_id] = "true"
        if show_id is not None:
            hidden.pop(show_id, None)

        if hide_id is not None or show_id is not None:
            self.hidden_calendars = hidden
        return hidden

    # -------------------------
    # Ventana de fechas
    # -------------------------

    @property
    def start_date(self) -> date:
        value = self._get(START_DATE)
        if not value:
            raise MissingSessionStateError(START_DATE)
        return date.fromisoformat(value)

    @start_date.setter
    def start_date(self, value: date) -> None:
        self._set(START_DATE, value.isoformat())

    @property
    def days(self) -> int:
        value = self._get(DAYS)
        if value is None:
            raise MissingSessionStateError(DAYS)
        return int(value)

    @days.setter
    def days(self, value: int) -> None:
        self._set(DAYS, int(value))

    @property
    def timezone(self) -> str:
        return self._get(TIMEZONE) or getattr(settings, "CALENDAR_TIMEZONE", "UTC")

    @timezone.setter
    def timezone(self, value: str) -> None:
        self._set(TIMEZONE, value)

    # -------------------------
    # Bootstrap
    # -------------------------

    def initialize(self, preferences) -> None:
        """
        Completa solo las claves que faltan: la primera vez que el usuario
        entra, la ventana arranca hoy con los días de las preferencias.
        """
        if not self.has(TIMEZONE):
            self.timezone = preferences.get_value(
                "timezone", getattr(settings, "CALENDAR_TIMEZONE", "UTC")
            )
        if not self.has(START_DATE):
            self.start_date = local_today(self.timezone)
            logger.debug("startDate inicializado en %s (%s)", self._get(START_DATE), self.portlet)
        if not self.has(DAYS):
            self.days = preferences.get_int("days", getattr(settings, "CALENDAR_DEFAULT_DAYS", 2))
        if not self.has(HIDDEN_CALENDARS):
            self.hidden_calendars = {}
