from django.urls import path

from calendar_portlet.api.views import CalendarDatesView, EventsView
from calendar_portlet.web.views import calendar_page

urlpatterns = [

    # WEB (vista agregada)
    path("", calendar_page, name="calendar_page"),

    # API (AJAX)
    path("dates", CalendarDatesView.as_view(), name="calendar-dates"),
    path("events", EventsView.as_view(), name="calendar-events"),
]
