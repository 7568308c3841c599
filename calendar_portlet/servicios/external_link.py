from __future__ import annotations

from typing import Optional

from calendar_portlet.exceptions import LinkUnavailableError
from calendar_portlet.servicios.adapters import CalendarAdapter


class ExternalLinkAdapter(CalendarAdapter):
    """
    Calendarios que solo aportan un link a la fuente original
    (feeds iCal, CalDAV, páginas de la universidad...).

    parameters["link"] admite {start}, {end} (fechas ISO) y {days}:
        "https://cal.example.edu/week?from={start}&to={end}"
    """

    def get_link(self, configuration, interval, request) -> Optional[str]:
        template = configuration.parameters.get("link")
        if not template:
            raise LinkUnavailableError(f"El calendario {configuration.id} no tiene link.")

        try:
            return template.format(
                start=interval.start.date().isoformat(),
                end=interval.end.date().isoformat(),
                days=interval.days,
            )
        except (KeyError, IndexError, ValueError) as e:
            raise LinkUnavailableError(
                f"Link mal formado en el calendario {configuration.id}: {template!r}"
            ) from e
