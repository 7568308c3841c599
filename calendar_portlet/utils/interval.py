from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from django.utils.dateparse import parse_datetime, parse_duration

from calendar_portlet.exceptions import BadIntervalFormatError
from calendar_portlet.utils.datetime import floor_to_midnight, midnight, to_aware


@dataclass(frozen=True)
class Interval:
    """
    Rango semiabierto [start, end). start <= end siempre.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise BadIntervalFormatError(
                f"El intervalo termina antes de empezar: {self.start} / {self.end}"
            )
        try:
            # end_midnight expresa el fin en el timezone del inicio
            self.end.astimezone(self.start.tzinfo)
        except OverflowError as e:
            raise BadIntervalFormatError(f"Intervalo fuera de rango: {self.start} / {self.end}") from e

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def days(self) -> int:
        # días completos, truncando
        return self.duration.days

    @property
    def start_midnight(self) -> datetime:
        return floor_to_midnight(self.start)

    @property
    def end_midnight(self) -> datetime:
        # el fin se expresa en el timezone del inicio
        return floor_to_midnight(self.end.astimezone(self.start.tzinfo))

    def isoformat(self) -> str:
        return f"{self.start.isoformat()}/{self.end.isoformat()}"

    @classmethod
    def from_days(cls, start_date: date, days: int, tz) -> "Interval":
        start = midnight(start_date, tz)
        return cls(start, midnight(start_date + timedelta(days=days), tz))


def _parse_instant(text: str) -> datetime:
    try:
        value = parse_datetime(text)
    except (ValueError, OverflowError) as e:
        raise BadIntervalFormatError(f"Fecha inválida en el intervalo: {text!r}") from e
    if value is None:
        raise BadIntervalFormatError(f"Fecha inválida en el intervalo: {text!r}")
    return to_aware(value)


def _parse_period(text: str) -> timedelta:
    try:
        value = parse_duration(text)
    except (ValueError, OverflowError) as e:
        raise BadIntervalFormatError(f"Duración fuera de rango en el intervalo: {text!r}") from e
    if value is None:
        raise BadIntervalFormatError(f"Duración inválida en el intervalo: {text!r}")
    return value


def _build_interval(first: str, second: str) -> Interval:
    if second.startswith("P"):
        start = _parse_instant(first)
        return Interval(start, start + _parse_period(second))

    if first.startswith("P"):
        end = _parse_instant(second)
        return Interval(end - _parse_period(first), end)

    return Interval(_parse_instant(first), _parse_instant(second))


def parse_interval(text: str) -> Interval:
    """
    Parsea un intervalo ISO 8601: "inicio/fin", "inicio/duración" o
    "duración/fin" (por ejemplo "2024-01-01T00:00:00.000Z/P7D").
    Cualquier otro formato, o un intervalo fuera del rango de datetime,
    lanza BadIntervalFormatError.
    """
    parts = (text or "").strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise BadIntervalFormatError(f"Intervalo mal formado: {text!r}")

    first, second = parts
    if first.startswith("P") and second.startswith("P"):
        raise BadIntervalFormatError(f"El intervalo no puede ser dos duraciones: {text!r}")

    try:
        return _build_interval(first, second)
    except OverflowError as e:
        raise BadIntervalFormatError(f"Intervalo fuera de rango: {text!r}") from e
