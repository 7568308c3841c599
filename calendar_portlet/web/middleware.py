from calendar_portlet.servicios.portlets import PortletPreferences, is_known_portlet, portlet_instance
from calendar_portlet.web.session import CalendarSession


class CalendarSessionMiddleware:
    """
    Inicializa el estado del calendario en la sesión (startDate, days,
    timezone, hiddenCalendars) la primera vez que se ve la instancia
    del portlet. Va después de SessionMiddleware.

    Solo se inicializan instancias configuradas: un ?portlet= inventado
    no agrega claves a la sesión.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        session = getattr(request, "session", None)
        portlet = portlet_instance(request)
        if session is not None and is_known_portlet(portlet):
            calendar_session = CalendarSession(session, portlet)
            calendar_session.initialize(PortletPreferences.for_request(request))
        return self.get_response(request)
