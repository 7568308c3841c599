from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from django.http import Http404


def portlet_instance(request) -> str:
    """
    Id de la instancia del portlet para este request (?portlet=...).
    """
    default = getattr(settings, "CALENDAR_DEFAULT_PORTLET", "default")
    return request.GET.get("portlet") or default


def portlet_config(portlet: str) -> Dict[str, Any]:
    portlets = getattr(settings, "CALENDAR_PORTLETS", {})
    return portlets.get(portlet) or {}


def is_known_portlet(portlet: str) -> bool:
    """La instancia por defecto o una declarada en CALENDAR_PORTLETS."""
    default = getattr(settings, "CALENDAR_DEFAULT_PORTLET", "default")
    return portlet == default or portlet in getattr(settings, "CALENDAR_PORTLETS", {})


def known_portlet_or_404(request) -> str:
    portlet = portlet_instance(request)
    if not is_known_portlet(portlet):
        raise Http404(f"Portlet de calendario desconocido: {portlet}")
    return portlet


class PortletPreferences:
    """
    Preferencias de solo lectura de una instancia del portlet.
    Los valores vienen de settings.CALENDAR_PORTLETS[<portlet>]["preferences"].
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self.values = dict(values or {})

    @classmethod
    def for_request(cls, request) -> "PortletPreferences":
        return cls(portlet_config(portlet_instance(request)).get("preferences"))

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.values.get(key)
        if value is None:
            return default
        return str(value)

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.values.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        # igual que Boolean.valueOf: solo "true" es verdadero
        return str(value).strip().lower() == "true"

    def get_int(self, key: str, default: int) -> int:
        value = self.values.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
