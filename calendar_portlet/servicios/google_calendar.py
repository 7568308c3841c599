from __future__ import annotations          # Permite usar anotaciones de tipos como strings (mejora compatibilidad y typing)
from datetime import datetime               # Manejo de fechas/horas para el rango consultado
from typing import Any, Dict, List, Optional  # Tipos para anotaciones (claridad y validación estática)
from urllib.parse import urlencode          # Arma el query string del link de Google Calendar
from django.conf import settings            # Acceso a settings.py (token OAuth, timezone)
from google.oauth2.credentials import Credentials   # Maneja credenciales OAuth2 ya autorizadas (token.json)
from googleapiclient.discovery import build         # Construye el cliente de Google Calendar API
from googleapiclient.errors import HttpError        # Captura errores HTTP devueltos por Google API
from calendar_portlet.exceptions import LinkUnavailableError
from calendar_portlet.servicios.adapters import CalendarAdapter
from calendar_portlet.utils.datetime import isoformat_z # Normaliza datetimes a ISO 8601 (RFC3339)


EMBED_URL = "https://calendar.google.com/calendar/embed"

# El portlet solo lee eventos
SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]


class GoogleCalendarService:
    """
    Servicio de acceso a Google Calendar API.

    - NO conoce HTTP ni el portlet
    - Usa OAuth previamente autorizado
    - Opera sobre UN calendarId por instancia
    """

    def __init__(self, calendar_id: Optional[str] = None):
        if not calendar_id:
            calendar_id = getattr(settings, "GOOGLE_CALENDAR_ID", "primary")

        self.calendar_id = calendar_id

    # -------------------------
    # Infraestructura
    # -------------------------

    @staticmethod
    def token_path() -> str:
        token_path = getattr(settings, "GOOGLE_TOKEN_FILE", None)
        if not token_path:
            raise RuntimeError("GOOGLE_TOKEN_FILE no está configurado en settings.")
        return str(token_path)

    def _get_credentials(self) -> Credentials:
        return Credentials.from_authorized_user_file(self.token_path(), SCOPES)

    def _client(self):
        creds = self._get_credentials()
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    # -------------------------
    # Operaciones
    # -------------------------

    def list_events(
        self,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: int = 250,
    ) -> List[Dict[str, Any]]:
        svc = self._client()

        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "singleEvents": True,
            "orderBy": "startTime",
            "maxResults": max_results,
        }

        if time_min:
            params["timeMin"] = isoformat_z(time_min)
        if time_max:
            params["timeMax"] = isoformat_z(time_max)

        try:
            res = svc.events().list(**params).execute()
            return res.get("items", [])
        except HttpError as e:
            raise RuntimeError(
                f"Google Calendar list_events falló ({self.calendar_id}): {e}"
            ) from e


class GoogleCalendarAdapter(CalendarAdapter):
    """
    Adapter para calendarios de Google.

    parameters:
      - calendarId: id del calendario en Google (obligatorio para link y eventos)
      - maxResults: tope de eventos por consulta (default 250)
    """

    service_class = GoogleCalendarService

    def _calendar_id(self, configuration) -> Optional[str]:
        return configuration.parameters.get("calendarId")

    def get_link(self, configuration, interval, request) -> Optional[str]:
        calendar_id = self._calendar_id(configuration)
        if not calendar_id:
            raise LinkUnavailableError(f"El calendario {configuration.id} no tiene calendarId.")

        tz_name = getattr(interval.start.tzinfo, "key", None) or getattr(
            settings, "CALENDAR_TIMEZONE", "UTC"
        )
        query = {
            "src": calendar_id,
            "ctz": tz_name,
            "mode": "AGENDA",
            "dates": f"{interval.start:%Y%m%d}/{interval.end:%Y%m%d}",
        }
        return f"{EMBED_URL}?{urlencode(query)}"

    def get_events(self, configuration, interval, request) -> List[Dict[str, Any]]:
        calendar_id = self._calendar_id(configuration)
        if not calendar_id:
            return []

        svc = self.service_class(calendar_id=calendar_id)
        return svc.list_events(
            time_min=interval.start,
            time_max=interval.end,
            max_results=int(configuration.parameters.get("maxResults", 250)),
        )
