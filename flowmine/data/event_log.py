"""
In-memory event log model: immutable events and the per-case view every
analyzer consumes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import cached_property
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Sequence, Tuple, Union

from flowmine.exceptions import EventLogError

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0

REQUIRED_FIELDS = ("case_id", "activity", "timestamp", "resource")


@dataclass(frozen=True)
class Event:
    """A single process-execution event"""
    case_id: str
    activity: str
    timestamp: datetime
    resource: str

    def __post_init__(self):
        for name in ("case_id", "activity", "resource"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise EventLogError(f"Event field '{name}' must be a non-empty string, got {value!r}")
        if not isinstance(self.timestamp, datetime):
            raise EventLogError(
                f"Event timestamp must be a datetime, got {type(self.timestamp).__name__} "
                f"for case '{self.case_id}'"
            )


CaseView = Mapping[str, Sequence[Event]]


def is_aware(timestamp: datetime) -> bool:
    return timestamp.tzinfo is not None and timestamp.utcoffset() is not None


def check_timezones(events: Sequence[Event]):
    """
    Reject a collection that mixes naive and timezone-aware timestamps

    Raises:
        EventLogError: if both kinds are present
    """
    kinds = {is_aware(event.timestamp) for event in events}
    if len(kinds) > 1:
        raise EventLogError(
            "Event timestamps mix naive and timezone-aware values; "
            "normalize them to one convention before building a log"
        )


def group_and_sort(events: Iterable[Event]) -> Dict[str, Tuple[Event, ...]]:
    """
    Group events by case id and order each case by timestamp

    The sort is stable, so events sharing a timestamp keep their input order.

    Args:
        events: Iterable of events in input order

    Returns:
        Dictionary mapping case id to its time-ordered events
    """
    events = list(events)
    check_timezones(events)

    groups: Dict[str, list] = {}
    for event in events:
        groups.setdefault(event.case_id, []).append(event)

    return {
        case_id: tuple(sorted(case_events, key=lambda e: e.timestamp))
        for case_id, case_events in groups.items()
    }


def duration_hours(earlier: Event, later: Event) -> float:
    """Absolute time gap between two events, in hours"""
    return abs((later.timestamp - earlier.timestamp).total_seconds()) / SECONDS_PER_HOUR


def is_reversed(earlier: Event, later: Event) -> bool:
    """True when the later event of a pair carries the earlier timestamp"""
    return later.timestamp < earlier.timestamp


class EventLog:
    """
    Immutable collection of events with a lazily computed case view

    The grouped-and-sorted view is computed once per instance, so a new
    input (or a new filter result) means a new EventLog.
    """

    def __init__(self, events: Iterable[Event]):
        self._events = tuple(events)
        for event in self._events:
            if not isinstance(event, Event):
                raise EventLogError(f"Expected Event, got {type(event).__name__}")
        check_timezones(self._events)

    @property
    def events(self) -> Tuple[Event, ...]:
        return self._events

    @cached_property
    def cases(self) -> Mapping[str, Tuple[Event, ...]]:
        """Read-only mapping of case id to time-ordered events"""
        grouped = group_and_sort(self._events)
        logger.debug(f"Grouped {len(self._events):,} events into {len(grouped):,} cases")
        return MappingProxyType(grouped)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __repr__(self) -> str:
        return f"EventLog(events={len(self._events)})"


def as_cases(source: Union[EventLog, CaseView, Iterable[Event]]) -> CaseView:
    """
    Normalize analyzer input to a case view

    Accepts an EventLog, an already grouped mapping, or raw events.
    """
    if isinstance(source, EventLog):
        return source.cases
    if isinstance(source, Mapping):
        return source
    return group_and_sort(source)


def as_events(source: Union[EventLog, CaseView, Iterable[Event]]) -> Iterable[Event]:
    """Flatten analyzer input back to an iterable of events"""
    if isinstance(source, EventLog):
        return source.events
    if isinstance(source, Mapping):
        return [event for case_events in source.values() for event in case_events]
    return source
