class CalendarPortletError(Exception):
    """Base de todos los errores del portlet de calendario."""


class MissingSessionStateError(CalendarPortletError):
    """La sesión no tiene startDate/days (no pasó por el bootstrap)."""

    def __init__(self, key: str):
        super().__init__(f"Falta '{key}' en la sesión del calendario.")
        self.key = key


class BadIntervalFormatError(CalendarPortletError, ValueError):
    """El parámetro 'interval' no es un intervalo ISO 8601 válido."""


class InvalidCalendarIdError(CalendarPortletError, ValueError):
    """hideCalendar/showCalendar no contiene un id entero."""


class AdapterNotFoundError(CalendarPortletError, LookupError):
    """No hay adapter registrado con ese nombre."""

    def __init__(self, name: str):
        super().__init__(f"Adapter de calendario no registrado: {name}")
        self.name = name


class LinkUnavailableError(CalendarPortletError):
    """
    El adapter no puede construir un link para este calendario.
    No es un error: el calendario simplemente queda sin link.
    """


class CalendarConfigurationError(CalendarPortletError):
    """Configuración de calendarios inválida en settings."""
