from __future__ import annotations

import enum
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from calendar_portlet.exceptions import AdapterNotFoundError, LinkUnavailableError

logger = logging.getLogger(__name__)


class CalendarAdapter:
    """
    Adapter para un tipo de fuente de calendario (Google, link externo, ...).

    Las subclases implementan get_link y, si la fuente lo permite,
    get_events. get_link puede lanzar LinkUnavailableError cuando el
    calendario no tiene link; eso no es un error.
    """

    def get_link(self, configuration, interval, request) -> Optional[str]:
        return None

    def get_events(self, configuration, interval, request) -> List[Dict[str, Any]]:
        return []


class LinkStatus(enum.Enum):
    LINKED = "linked"
    NO_LINK = "no_link"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class LinkResult:
    status: LinkStatus
    url: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def of(cls, url: Optional[str]) -> "LinkResult":
        if url is None:
            return cls(LinkStatus.NO_LINK)
        return cls(LinkStatus.LINKED, url=url)


class AdapterHandle:
    """
    Adapter ya resuelto en el registro. Traduce las excepciones del
    adapter a un LinkResult para que el llamador no use try/except
    como control de flujo.
    """

    def __init__(self, name: str, adapter: CalendarAdapter):
        self.name = name
        self.adapter = adapter

    def link(self, configuration, interval, request) -> LinkResult:
        try:
            return LinkResult.of(self.adapter.get_link(configuration, interval, request))
        except LinkUnavailableError:
            return LinkResult(LinkStatus.UNAVAILABLE)
        except Exception as e:
            return LinkResult(LinkStatus.FAILED, error=e)

    def events(self, configuration, interval, request) -> List[Dict[str, Any]]:
        return list(self.adapter.get_events(configuration, interval, request) or [])


class AdapterRegistry:
    """
    Registro nombre -> factory de adapters.

    Se llena al arrancar desde settings.CALENDAR_ADAPTERS; se pueden
    agregar adapters sin tocar el resto del código. Cada adapter se
    instancia una sola vez, la primera vez que se pide.
    """

    def __init__(self):
        self._factories: Dict[str, Callable[[], CalendarAdapter]] = {}
        self._instances: Dict[str, CalendarAdapter] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: Callable[[], CalendarAdapter]) -> None:
        with self._lock:
            self._factories[name] = factory
            self._instances.pop(name, None)

    def load(self, adapters: Mapping[str, Any]) -> None:
        for name, target in adapters.items():
            factory = import_string(target) if isinstance(target, str) else target
            self.register(name, factory)
            logger.debug("Adapter de calendario registrado: %s -> %s", name, target)

    def load_from_settings(self) -> None:
        self.load(getattr(settings, "CALENDAR_ADAPTERS", {}))

    def names(self) -> List[str]:
        return list(self._factories)

    def resolve(self, name: str) -> AdapterHandle:
        with self._lock:
            adapter = self._instances.get(name)
            if adapter is None:
                factory = self._factories.get(name)
                if factory is None:
                    raise AdapterNotFoundError(name)
                adapter = factory()
                self._instances[name] = adapter
        return AdapterHandle(name, adapter)


registry = AdapterRegistry()

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def adapter_timeout() -> Optional[float]:
    return getattr(settings, "CALENDAR_ADAPTER_TIMEOUT", None)


def call_with_timeout(fn, *args, timeout: Optional[float] = None):
    """
    Ejecuta fn en el pool compartido y espera como máximo `timeout`
    segundos (lanza concurrent.futures.TimeoutError). Sin timeout se
    ejecuta en el mismo hilo.
    """
    global _executor

    if not timeout:
        return fn(*args)

    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=getattr(settings, "CALENDAR_ADAPTER_WORKERS", 4),
                thread_name_prefix="calendar-adapter",
            )
    return _executor.submit(fn, *args).result(timeout=timeout)
