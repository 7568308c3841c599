from django.apps import AppConfig


class CalendarPortletConfig(AppConfig):
    name = "calendar_portlet"
    verbose_name = "Calendar portlet"

    def ready(self):
        from calendar_portlet.servicios.adapters import registry

        registry.load_from_settings()
