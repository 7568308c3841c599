import logging

from django.http import HttpResponseBadRequest
from django.shortcuts import render

from calendar_portlet.exceptions import BadIntervalFormatError, InvalidCalendarIdError
from calendar_portlet.servicios.portlets import known_portlet_or_404
from calendar_portlet.web.controller import build_calendar_model

logger = logging.getLogger(__name__)


def calendar_page(request):
    """
    Renderiza la vista agregada de calendarios del usuario.

    Query params:
      - interval: intervalo ISO 8601 ("inicio/fin"); si falta se usa la sesión
      - hideCalendar / showCalendar: id del calendario a ocultar / mostrar
      - windowState: maximized/detached -> vista ancha, otro -> angosta
      - portlet: instancia del portlet (default settings.CALENDAR_DEFAULT_PORTLET);
        una instancia no configurada responde 404
    """
    known_portlet_or_404(request)

    try:
        view_name, model = build_calendar_model(request, request.GET.get("interval"))
    except (BadIntervalFormatError, InvalidCalendarIdError) as e:
        logger.warning("Request de calendario inválido: %s", e)
        return HttpResponseBadRequest(str(e))

    return render(request, f"calendar_portlet/{view_name}.html", {"model": model})
