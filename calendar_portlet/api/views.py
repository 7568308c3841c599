from __future__ import annotations          # Permite usar anotaciones de tipos como strings (typing moderno)
import logging                              # Sistema de logging estándar de Python
from rest_framework import status           # Códigos HTTP (200, 400, etc.)
from rest_framework.response import Response # Respuesta HTTP JSON de Django REST Framework
from rest_framework.views import APIView    # Base class para crear endpoints REST (GET/POST)

from calendar_portlet.api.serializers import (  # Serializers DRF: validan input y normalizan output
    CalendarDatesSerializer,                # Valida el cambio de startDate/days/timezone
    EventListQuerySerializer,               # Valida query params del listado de eventos
    EventOutSerializer,                     # Normaliza los eventos devueltos por los adapters
)
from calendar_portlet.exceptions import BadIntervalFormatError
from calendar_portlet.servicios.calendar_set_dao import get_calendar_set_dao
from calendar_portlet.servicios.portlets import known_portlet_or_404
from calendar_portlet.web.controller import collect_events, resolve_interval
from calendar_portlet.web.session import CalendarSession

logger = logging.getLogger(__name__)


def _dates_payload(calendar_session: CalendarSession):
    return {
        "startDate": calendar_session.start_date.isoformat(),
        "days": calendar_session.days,
        "timezone": calendar_session.timezone,
    }


class CalendarDatesView(APIView):
    """
    GET  /calendar/dates?portlet=...
    POST /calendar/dates   {"startDate": "2024-01-01", "days": 7, "timezone": "..."}

    La ventana de fechas solo cambia por acá (AJAX); la vista principal
    la lee de la sesión.
    """

    def get(self, request):
        calendar_session = CalendarSession(request.session, known_portlet_or_404(request))
        return Response(_dates_payload(calendar_session), status=status.HTTP_200_OK)

    def post(self, request):
        in_ser = CalendarDatesSerializer(data=request.data)
        in_ser.is_valid(raise_exception=True)
        data = in_ser.validated_data

        calendar_session = CalendarSession(request.session, known_portlet_or_404(request))

        if "startDate" in data:
            calendar_session.start_date = data["startDate"]
        if "days" in data:
            calendar_session.days = data["days"]
        if "timezone" in data:
            calendar_session.timezone = data["timezone"]

        logger.debug("Ventana de fechas actualizada (%s): %s", calendar_session.portlet, data)
        return Response(_dates_payload(calendar_session), status=status.HTTP_200_OK)


class EventsView(APIView):
    """
    GET /calendar/events?interval=...&portlet=...

    Eventos de los calendarios visibles en la ventana de fechas.
    Un calendario que falla no rompe la respuesta: queda sin eventos.
    """

    def get(self, request):
        query_ser = EventListQuerySerializer(data=request.query_params)
        query_ser.is_valid(raise_exception=True)

        calendar_session = CalendarSession(request.session, known_portlet_or_404(request))

        try:
            resolved = resolve_interval(query_ser.validated_data.get("interval"), calendar_session)
        except BadIntervalFormatError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        calendar_set = get_calendar_set_dao().get_calendar_set(request)
        items = collect_events(
            calendar_set.configurations,
            resolved.interval,
            calendar_session.hidden_calendars,
            request,
        )

        out = EventOutSerializer(items, many=True).data
        return Response({"count": len(out), "events": out}, status=status.HTTP_200_OK)
