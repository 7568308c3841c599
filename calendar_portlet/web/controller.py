from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as AdapterTimeoutError
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from calendar_portlet.calendars import CalendarConfiguration, sort_by_name
from calendar_portlet.exceptions import AdapterNotFoundError, LinkUnavailableError
from calendar_portlet.servicios.adapters import (
    AdapterRegistry,
    LinkStatus,
    adapter_timeout,
    call_with_timeout,
    registry as default_registry,
)
from calendar_portlet.servicios.calendar_set_dao import get_calendar_set_dao
from calendar_portlet.servicios.portlets import PortletPreferences, portlet_instance
from calendar_portlet.utils.datetime import get_tz, today_and_tomorrow
from calendar_portlet.utils.interval import Interval, parse_interval
from calendar_portlet.web.session import CalendarSession

logger = logging.getLogger(__name__)

PREFERENCE_DISABLE_PREFERENCES = "disablePreferences"
PREFERENCE_DISABLE_ADMINISTRATION = "disableAdministration"
PREFERENCE_SHOW_DATE_PICKER = "showDatePicker"

CALENDAR_WIDE_VIEW = "calendarWideView"
CALENDAR_NARROW_VIEW = "calendarNarrowView"

WIDE_WINDOW_STATES = ("maximized", "detached")


@dataclass(frozen=True)
class ResolvedInterval:
    interval: Interval
    start_date: datetime
    end_date: datetime
    days: int
    today: datetime
    tomorrow: datetime


@dataclass(frozen=True)
class LinkResolution:
    calendars: List[CalendarConfiguration]
    colors: Dict[int, int]
    links: Dict[int, str]


def resolve_interval(interval_string: Optional[str], calendar_session: CalendarSession) -> ResolvedInterval:
    """
    Ventana de fechas a mostrar.

    Con ?interval= se usa ese intervalo (días = duración truncada);
    si no, startDate + days de la sesión. today/tomorrow siempre salen
    del timezone de la sesión.
    """
    tz_id = calendar_session.timezone

    if interval_string:
        interval = parse_interval(interval_string)
        start_date = interval.start_midnight
        end_date = interval.end_midnight
        days = interval.days
    else:
        start = calendar_session.start_date
        logger.debug("startDate desde la sesión: %s", start)
        days = calendar_session.days
        interval = Interval.from_days(start, days, get_tz(tz_id))
        start_date, end_date = interval.start, interval.end

    today, tomorrow = today_and_tomorrow(tz_id)
    return ResolvedInterval(interval, start_date, end_date, days, today, tomorrow)


def is_hidden(configuration: CalendarConfiguration, hidden: Mapping[int, Any]) -> bool:
    return bool(hidden.get(configuration.id))


def resolve_links(
    configurations,
    interval: Interval,
    hidden: Mapping[int, Any],
    request,
    adapter_registry: Optional[AdapterRegistry] = None,
) -> LinkResolution:
    """
    Colores para todos los calendarios (ocultos incluidos, por orden de
    nombre) y links solo para los visibles. El fallo de un adapter nunca
    corta el procesamiento del resto.
    """
    adapter_registry = adapter_registry or default_registry
    timeout = adapter_timeout()

    calendars = sort_by_name(configurations)
    colors: Dict[int, int] = {}
    links: Dict[int, str] = {}

    for index, calendar in enumerate(calendars):
        colors[calendar.id] = index

        # los calendarios ocultos no llaman al adapter
        if is_hidden(calendar, hidden):
            continue

        adapter_name = calendar.calendar_definition.class_name
        try:
            handle = adapter_registry.resolve(adapter_name)
        except AdapterNotFoundError as e:
            logger.error("No se encontró el adapter del calendario %s: %s", calendar.id, e)
            continue
        except Exception:
            # el factory del adapter falló al instanciarlo
            logger.exception("No se pudo crear el adapter %s del calendario %s", adapter_name, calendar.id)
            continue

        try:
            result = call_with_timeout(handle.link, calendar, interval, request, timeout=timeout)
        except AdapterTimeoutError:
            logger.error(
                "Timeout (%ss) obteniendo el link del calendario %s (%s)",
                timeout, calendar.id, adapter_name,
            )
            continue

        if result.status is LinkStatus.LINKED:
            links[calendar.id] = result.url
        elif result.status is LinkStatus.FAILED:
            logger.error(
                "Error obteniendo el link del calendario %s (%s): %s",
                calendar.id, adapter_name, result.error,
                exc_info=result.error,
            )

    return LinkResolution(calendars=calendars, colors=colors, links=links)


def collect_events(
    configurations,
    interval: Interval,
    hidden: Mapping[int, Any],
    request,
    adapter_registry: Optional[AdapterRegistry] = None,
) -> List[Dict[str, Any]]:
    """
    Eventos de los calendarios visibles dentro del intervalo, ordenados
    por inicio. Mismas reglas de error que resolve_links.
    """
    adapter_registry = adapter_registry or default_registry
    timeout = adapter_timeout()
    events: List[Dict[str, Any]] = []

    for calendar in sort_by_name(configurations):
        if is_hidden(calendar, hidden):
            continue

        try:
            handle = adapter_registry.resolve(calendar.calendar_definition.class_name)
            items = call_with_timeout(handle.events, calendar, interval, request, timeout=timeout)
        except LinkUnavailableError:
            continue
        except AdapterNotFoundError as e:
            logger.error("No se encontró el adapter del calendario %s: %s", calendar.id, e)
            continue
        except AdapterTimeoutError:
            logger.error("Timeout (%ss) obteniendo eventos del calendario %s", timeout, calendar.id)
            continue
        except Exception:
            logger.exception("Error obteniendo eventos del calendario %s", calendar.id)
            continue

        for item in items:
            events.append({**item, "calendar": calendar.id})

    events.sort(key=_event_start)
    return events


def _event_start(event: Mapping[str, Any]) -> str:
    start = event.get("start") or {}
    return start.get("dateTime") or start.get("date") or ""


def select_view(window_state: Optional[str]) -> str:
    if (window_state or "").strip().lower() in WIDE_WINDOW_STATES:
        return CALENDAR_WIDE_VIEW
    return CALENDAR_NARROW_VIEW


def is_guest(request) -> bool:
    user = getattr(request, "user", None)
    return user is None or not user.is_authenticated


def build_calendar_model(
    request,
    interval_string: Optional[str] = None,
    calendar_set_dao=None,
    adapter_registry: Optional[AdapterRegistry] = None,
) -> Tuple[str, Dict[str, Any]]:
    """
    Arma (nombre de vista, modelo) para la vista principal del calendario.

    El modelo trae: guest, showDatePicker, startDate, endDate, days,
    today, tomorrow, calendars, colors, links, hiddenCalendars,
    timezone, disablePreferences, disableAdministration.
    """
    calendar_session = CalendarSession(request.session, portlet_instance(request))
    prefs = PortletPreferences.for_request(request)

    model: Dict[str, Any] = {"guest": is_guest(request)}

    hidden = calendar_session.update_hidden_calendars(
        hide_calendar=request.GET.get("hideCalendar"),
        show_calendar=request.GET.get("showCalendar"),
    )

    # por defecto el DatePicker se muestra
    model["showDatePicker"] = prefs.get_bool(PREFERENCE_SHOW_DATE_PICKER, True)

    resolved = resolve_interval(interval_string, calendar_session)
    model["startDate"] = resolved.start_date
    model["endDate"] = resolved.end_date
    model["days"] = resolved.days
    model["today"] = resolved.today
    model["tomorrow"] = resolved.tomorrow

    calendar_set = (calendar_set_dao or get_calendar_set_dao()).get_calendar_set(request)
    resolution = resolve_links(
        calendar_set.configurations, resolved.interval, hidden, request, adapter_registry
    )

    model["calendars"] = resolution.calendars
    model["colors"] = resolution.colors
    model["links"] = resolution.links
    model["hiddenCalendars"] = hidden
    model["timezone"] = calendar_session.timezone

    model[PREFERENCE_DISABLE_PREFERENCES] = prefs.get_bool(PREFERENCE_DISABLE_PREFERENCES, False)
    model[PREFERENCE_DISABLE_ADMINISTRATION] = prefs.get_bool(PREFERENCE_DISABLE_ADMINISTRATION, False)

    view_name = select_view(request.GET.get("windowState"))
    return view_name, model
