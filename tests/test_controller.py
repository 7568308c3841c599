import logging
import threading
from datetime import date, datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone

from calendar_portlet.exceptions import InvalidCalendarIdError, MissingSessionStateError
from calendar_portlet.utils.interval import Interval
from calendar_portlet.web.controller import (
    CALENDAR_NARROW_VIEW,
    CALENDAR_WIDE_VIEW,
    build_calendar_model,
    collect_events,
    resolve_interval,
    resolve_links,
    select_view,
)
from calendar_portlet.web.session import CalendarSession
from tests.fakes import FakeCalendarSetDao, make_calendar

INTERVAL = Interval.from_days(date(2024, 1, 1), 7, ZoneInfo("UTC"))

MODEL_KEYS = {
    "guest", "showDatePicker", "startDate", "endDate", "days", "today", "tomorrow",
    "calendars", "colors", "links", "hiddenCalendars", "timezone",
    "disablePreferences", "disableAdministration",
}


@pytest.fixture
def calendar_session(session):
    calendar_session = CalendarSession(session, "default")
    calendar_session.timezone = "UTC"
    calendar_session.start_date = date(2024, 1, 1)
    calendar_session.days = 5
    calendar_session.hidden_calendars = {}
    return calendar_session


def _errors(caplog):
    return [r for r in caplog.records if r.levelno >= logging.ERROR]


# -------------------------
# Intervalo
# -------------------------

def test_interval_from_request_parameter(calendar_session):
    resolved = resolve_interval("2024-01-01T00:00:00.000Z/2024-01-08T00:00:00.000Z", calendar_session)

    assert resolved.days == 7
    assert resolved.start_date.date() == date(2024, 1, 1)
    assert resolved.end_date.date() == date(2024, 1, 8)


def test_interval_from_session(calendar_session):
    resolved = resolve_interval(None, calendar_session)

    assert resolved.days == 5
    assert resolved.start_date == datetime(2024, 1, 1, tzinfo=ZoneInfo("UTC"))
    assert resolved.end_date.date() == date(2024, 1, 6)
    assert resolved.interval.end == resolved.end_date


def test_empty_interval_parameter_uses_session(calendar_session):
    assert resolve_interval("", calendar_session).days == 5


def test_interval_without_session_state(session):
    with pytest.raises(MissingSessionStateError):
        resolve_interval(None, CalendarSession(session, "default"))


def test_today_and_tomorrow_follow_session_timezone(calendar_session, monkeypatch):
    monkeypatch.setattr(timezone, "now", lambda: datetime(2024, 3, 10, 2, 30, tzinfo=dt_timezone.utc))
    calendar_session.timezone = "America/Santiago"

    resolved = resolve_interval("2024-01-01T00:00:00Z/2024-01-02T00:00:00Z", calendar_session)

    santiago = ZoneInfo("America/Santiago")
    assert resolved.today == datetime(2024, 3, 9, tzinfo=santiago)
    assert resolved.tomorrow == datetime(2024, 3, 10, tzinfo=santiago)


# -------------------------
# Links y colores
# -------------------------

def test_colors_cover_every_calendar_in_name_order(adapter_registry):
    calendars = [make_calendar(10, "Zoología"), make_calendar(20, "Arte"), make_calendar(30, "Música")]

    resolution = resolve_links(calendars, INTERVAL, {20: "true"}, None, adapter_registry)

    assert [c.id for c in resolution.calendars] == [20, 30, 10]
    assert resolution.colors == {20: 0, 30: 1, 10: 2}


def test_equal_names_keep_configuration_order(adapter_registry):
    calendars = [make_calendar(5, "Cursos"), make_calendar(1, "Cursos"), make_calendar(3, "Alumnos")]

    resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)

    assert resolution.colors == {3: 0, 5: 1, 1: 2}


def test_hidden_calendars_never_call_adapter(adapter_registry, fake_adapter):
    calendars = [make_calendar(1, "A"), make_calendar(2, "B"), make_calendar(3, "C")]

    resolution = resolve_links(calendars, INTERVAL, {2: "true"}, None, adapter_registry)

    assert fake_adapter.calls == [1, 3]
    assert resolution.links == {
        1: "https://calendars.example.edu/1",
        3: "https://calendars.example.edu/3",
    }
    assert 2 in resolution.colors


def test_falsy_hidden_marker_counts_as_visible(adapter_registry):
    resolution = resolve_links([make_calendar(1, "A")], INTERVAL, {1: ""}, None, adapter_registry)
    assert 1 in resolution.links


def test_adapter_without_link(adapter_registry, caplog):
    resolution = resolve_links([make_calendar(1, "A", mode="none")], INTERVAL, {}, None, adapter_registry)

    assert resolution.links == {}
    assert resolution.colors == {1: 0}
    assert _errors(caplog) == []


def test_link_unavailable_is_silent(adapter_registry, caplog):
    calendars = [make_calendar(1, "A", mode="unavailable"), make_calendar(2, "B")]

    with caplog.at_level(logging.DEBUG):
        resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)

    assert resolution.colors == {1: 0, 2: 1}
    assert list(resolution.links) == [2]
    assert _errors(caplog) == []


def test_unexpected_adapter_failure_is_logged_and_skipped(adapter_registry, caplog):
    calendars = [make_calendar(1, "A", mode="boom"), make_calendar(2, "B")]

    resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)

    assert list(resolution.links) == [2]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "adapter roto" in errors[0].getMessage()


def test_unregistered_adapter_is_logged_and_skipped(adapter_registry, caplog):
    calendars = [make_calendar(1, "A", adapter="missingAdapter"), make_calendar(2, "B")]

    resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)

    assert resolution.colors == {1: 0, 2: 1}
    assert list(resolution.links) == [2]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "missingAdapter" in errors[0].getMessage()


def test_adapter_that_cannot_be_created_is_logged_and_skipped(adapter_registry, caplog):
    def broken_factory():
        raise RuntimeError("no se pudo crear")

    adapter_registry.register("broken", broken_factory)
    calendars = [make_calendar(1, "A", adapter="broken"), make_calendar(2, "B")]

    resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)

    assert resolution.colors == {1: 0, 2: 1}
    assert list(resolution.links) == [2]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "broken" in errors[0].getMessage()
    assert "no se pudo crear" in str(errors[0].exc_info[1])


def test_slow_adapter_times_out(adapter_registry, settings, caplog):
    settings.CALENDAR_ADAPTER_TIMEOUT = 0.05
    release = threading.Event()

    class SlowAdapter:
        def get_link(self, configuration, interval, request):
            release.wait(5)
            return "https://slow.example.edu"

    adapter_registry.register("slow", SlowAdapter)
    calendars = [make_calendar(1, "A", adapter="slow"), make_calendar(2, "B")]

    try:
        resolution = resolve_links(calendars, INTERVAL, {}, None, adapter_registry)
    finally:
        release.set()

    assert list(resolution.links) == [2]
    assert any("Timeout" in r.getMessage() for r in _errors(caplog))


# -------------------------
# Eventos
# -------------------------

def test_collect_events_from_visible_calendars(adapter_registry, caplog):
    calendars = [
        make_calendar(1, "A", events=[{"id": "b", "start": {"dateTime": "2024-01-02T10:00:00Z"}}]),
        make_calendar(2, "B", events=[{"id": "a", "start": {"date": "2024-01-01"}}]),
        make_calendar(3, "C", events=[{"id": "hidden", "start": {"date": "2024-01-01"}}]),
        make_calendar(4, "D", mode="boom"),
    ]

    events = collect_events(calendars, INTERVAL, {3: "true"}, None, adapter_registry)

    assert [(e["id"], e["calendar"]) for e in events] == [("a", 2), ("b", 1)]
    assert len(_errors(caplog)) == 1


# -------------------------
# Vista
# -------------------------

@pytest.mark.parametrize("state", ["maximized", "MAXIMIZED", "detached", "Detached"])
def test_wide_view(state):
    assert select_view(state) == CALENDAR_WIDE_VIEW


@pytest.mark.parametrize("state", ["normal", "minimized", "exclusive", "", None])
def test_narrow_view(state):
    assert select_view(state) == CALENDAR_NARROW_VIEW


def test_build_calendar_model(portal_request, calendar_session, adapter_registry):
    dao = FakeCalendarSetDao(
        make_calendar(1, "Clases"),
        make_calendar(2, "Biblioteca", mode="unavailable"),
        make_calendar(3, "Deportes"),
    )
    request = portal_request(hideCalendar="3", windowState="MAXIMIZED")

    view_name, model = build_calendar_model(
        request, None, calendar_set_dao=dao, adapter_registry=adapter_registry
    )

    assert view_name == CALENDAR_WIDE_VIEW
    assert set(model) == MODEL_KEYS
    assert model["guest"] is True
    assert model["days"] == 5
    assert model["endDate"].date() == date(2024, 1, 6)
    assert [c.id for c in model["calendars"]] == [2, 1, 3]
    assert model["colors"] == {2: 0, 1: 1, 3: 2}
    assert model["links"] == {1: "https://calendars.example.edu/1"}
    assert model["hiddenCalendars"] == {3: "true"}
    assert calendar_session.hidden_calendars == {3: "true"}
    assert model["timezone"] == "UTC"
    # preferencias de tests.settings: showDatePicker = "false"
    assert model["showDatePicker"] is False
    assert model["disablePreferences"] is False
    assert model["disableAdministration"] is False


def test_build_calendar_model_preferences(portal_request, calendar_session, adapter_registry, settings):
    settings.CALENDAR_PORTLETS = {
        "otro": {"preferences": {"disablePreferences": "TRUE", "disableAdministration": "yes"}},
    }
    other = CalendarSession(calendar_session.session, "otro")
    other.start_date = date(2024, 1, 1)
    other.days = 1

    _, model = build_calendar_model(
        portal_request(portlet="otro"), None,
        calendar_set_dao=FakeCalendarSetDao(), adapter_registry=adapter_registry,
    )

    assert model["showDatePicker"] is True
    assert model["disablePreferences"] is True
    # solo "true" cuenta como verdadero
    assert model["disableAdministration"] is False
    assert model["calendars"] == [] and model["colors"] == {} and model["links"] == {}


def test_build_calendar_model_with_explicit_interval(portal_request, calendar_session, adapter_registry):
    _, model = build_calendar_model(
        portal_request(),
        "2024-01-01T00:00:00.000Z/2024-01-08T00:00:00.000Z",
        calendar_set_dao=FakeCalendarSetDao(make_calendar(1, "A")),
        adapter_registry=adapter_registry,
    )

    assert model["days"] == 7
    assert model["endDate"] == datetime(2024, 1, 8, tzinfo=dt_timezone.utc)


def test_build_calendar_model_rejects_bad_calendar_id(portal_request, calendar_session, adapter_registry):
    with pytest.raises(InvalidCalendarIdError):
        build_calendar_model(
            portal_request(showCalendar="abc"), None,
            calendar_set_dao=FakeCalendarSetDao(), adapter_registry=adapter_registry,
        )
