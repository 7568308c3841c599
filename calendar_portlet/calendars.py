from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Tuple


@dataclass(frozen=True)
class CalendarDefinition:
    """
    Qué adapter usar para un calendario y con qué parámetros.
    """
    class_name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CalendarConfiguration:
    """
    Un calendario asociado a una instancia del portlet.
    Inmutable durante el request.
    """
    id: int
    name: str
    calendar_definition: CalendarDefinition

    @property
    def parameters(self) -> Mapping[str, Any]:
        return self.calendar_definition.parameters


@dataclass(frozen=True)
class CalendarSet:
    """
    Conjunto ordenado de calendarios de una instancia del portlet.
    """
    portlet: str
    configurations: Tuple[CalendarConfiguration, ...] = ()

    def __iter__(self) -> Iterator[CalendarConfiguration]:
        return iter(self.configurations)

    def __len__(self) -> int:
        return len(self.configurations)


def sort_by_name(configurations) -> List[CalendarConfiguration]:
    # sorted() es estable: nombres iguales conservan el orden de configuración
    return sorted(configurations, key=lambda c: c.name)
