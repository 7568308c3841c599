from __future__ import annotations

import logging
from typing import Any, Mapping

from django.conf import settings
from django.utils.module_loading import import_string

from calendar_portlet.calendars import CalendarConfiguration, CalendarDefinition, CalendarSet
from calendar_portlet.exceptions import CalendarConfigurationError
from calendar_portlet.servicios.portlets import portlet_config, portlet_instance

logger = logging.getLogger(__name__)


class SettingsCalendarSetDao:
    """
    Carga los calendarios de la instancia del portlet desde
    settings.CALENDAR_PORTLETS[<portlet>]["calendars"].

    Siempre retorna un CalendarSet (vacío si la instancia no tiene
    calendarios). Solo falla si la configuración está rota.
    """

    def get_calendar_set(self, request) -> CalendarSet:
        portlet = portlet_instance(request)
        entries = portlet_config(portlet).get("calendars") or []

        configurations = tuple(self._build(portlet, entry) for entry in entries)

        seen = set()
        for configuration in configurations:
            if configuration.id in seen:
                raise CalendarConfigurationError(
                    f"Id de calendario repetido en el portlet '{portlet}': {configuration.id}"
                )
            seen.add(configuration.id)

        return CalendarSet(portlet=portlet, configurations=configurations)

    def _build(self, portlet: str, entry: Mapping[str, Any]) -> CalendarConfiguration:
        try:
            calendar_id = int(entry["id"])
            name = str(entry["name"])
            adapter = str(entry["adapter"])
        except (KeyError, TypeError, ValueError) as e:
            raise CalendarConfigurationError(
                f"Calendario mal configurado en el portlet '{portlet}': {entry!r}"
            ) from e

        parameters = entry.get("parameters") or {}
        if not isinstance(parameters, Mapping):
            raise CalendarConfigurationError(
                f"'parameters' debe ser un dict (calendario {calendar_id}, portlet '{portlet}')."
            )

        return CalendarConfiguration(
            id=calendar_id,
            name=name,
            calendar_definition=CalendarDefinition(class_name=adapter, parameters=dict(parameters)),
        )


def get_calendar_set_dao():
    path = getattr(settings, "CALENDAR_SET_DAO", None)
    if not path:
        return SettingsCalendarSetDao()
    logger.debug("Usando CALENDAR_SET_DAO=%s", path)
    return import_string(path)()
