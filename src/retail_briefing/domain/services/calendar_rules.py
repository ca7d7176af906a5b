"""Calendar rule engine deriving events, holidays and notes from a date.

Every rule is a pure function of the calendar date it receives. The lookup
tables are read-only module constants; alternative tables (another country,
another product calendar) can be passed to :class:`CalendarRuleEngine`.
"""
from __future__ import annotations

from datetime import date, datetime
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Union

from retail_briefing.domain.models.briefing import CalendarSnapshot

# Fixed-date national holidays keyed by MM-DD. Moving feasts (Semana Santa)
# only appear as seasonal events.
HOLIDAYS: Mapping[str, str] = MappingProxyType(
    {
        "01-01": "Año Nuevo",
        "02-05": "Día de la Constitución",
        "03-21": "Natalicio de Benito Juárez",
        "05-01": "Día del Trabajo",
        "05-10": "Día de las Madres",
        "09-16": "Día de la Independencia",
        "11-02": "Día de Muertos",
        "11-20": "Revolución Mexicana",
        "12-12": "Día de la Virgen",
        "12-25": "Navidad",
    }
)

SEASONAL_EVENTS: Mapping[str, Sequence[str]] = MappingProxyType(
    {
        "01": ("Temporada de Rosca de Reyes (hasta el 6)",),
        "02": ("San Valentín (14)",),
        "04": ("Semana Santa (variable)",),
        "05": ("Día de las Madres (10)",),
        "10": ("Halloween (31)",),
        "11": ("Día de Muertos (1-2)",),
        "12": ("Temporada Navideña", "Nochebuena (24)", "Fin de Año (31)"),
    }
)

EVENT_MONTH_START_CLOSING = "Inicio de mes - cierre previo"
EVENT_PAY_DAY = "Día de quincena - mayor afluencia esperada"
EVENT_FRIDAY_EVENING = "Viernes - mayor afluencia nocturna"
EVENT_SATURDAY_PEAK = "Sábado - día de mayor venta"

NOTE_ROSCA_SEASON = "Temporada alta de rosca - verificar inventario"
NOTE_HOLIDAY_SEASON = "Temporada navideña - horarios extendidos posibles"
NOTE_MONTH_END = "Fin de mes - revisar inventarios para cierre"

PAY_DAYS = frozenset({15, 30, 31})

_MONDAY, _FRIDAY, _SATURDAY = 0, 4, 5

DateLike = Union[date, datetime]


def as_calendar_date(value: DateLike) -> date:
    """Drop any time-of-day component and return the plain calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def holiday_key(day: date) -> str:
    return f"{day.month:02d}-{day.day:02d}"


class CalendarRuleEngine:
    """Evaluate the fixed calendar rules for a date."""

    def __init__(
        self,
        holidays: Optional[Mapping[str, str]] = None,
        seasonal_events: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self._holidays = MappingProxyType(dict(holidays if holidays is not None else HOLIDAYS))
        self._seasonal = MappingProxyType(
            {
                month: tuple(events)
                for month, events in (seasonal_events if seasonal_events is not None else SEASONAL_EVENTS).items()
            }
        )

    def evaluate(self, value: DateLike) -> CalendarSnapshot:
        day = as_calendar_date(value)
        return CalendarSnapshot(
            date=day,
            events=tuple(self.events(day)),
            holiday=self.holiday(day),
            notes=tuple(self.notes(day)),
        )

    def holiday(self, value: DateLike) -> Optional[str]:
        """Return the holiday name for an exact MM-DD match, else None."""
        return self._holidays.get(holiday_key(as_calendar_date(value)))

    def events(self, value: DateLike) -> List[str]:
        """Seasonal events first, then weekday/operational rules in fixed order."""
        day = as_calendar_date(value)
        events: List[str] = list(self._seasonal.get(f"{day.month:02d}", ()))

        weekday = day.weekday()
        if weekday == _MONDAY and day.day <= 7:
            events.append(EVENT_MONTH_START_CLOSING)
        if day.day in PAY_DAYS:
            events.append(EVENT_PAY_DAY)
        if weekday == _FRIDAY:
            events.append(EVENT_FRIDAY_EVENING)
        if weekday == _SATURDAY:
            events.append(EVENT_SATURDAY_PEAK)
        return events

    def notes(self, value: DateLike) -> List[str]:
        day = as_calendar_date(value)
        notes: List[str] = []
        if day.month == 1 and day.day <= 6:
            notes.append(NOTE_ROSCA_SEASON)
        if day.month == 12:
            notes.append(NOTE_HOLIDAY_SEASON)
        if day.day >= 28:
            notes.append(NOTE_MONTH_END)
        return notes
