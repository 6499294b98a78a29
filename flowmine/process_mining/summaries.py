"""
Cross-cutting counts over an event log: totals, activity frequency, cases per day
"""
import time
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Tuple, Union, Iterable, Any

import pandas as pd

from flowmine.data.event_log import Event, EventLog, CaseView, as_events

logger = logging.getLogger(__name__)


@dataclass
class LogSummary:
    total_cases: int = 0
    total_events: int = 0
    total_resources: int = 0
    total_activities: int = 0
    top_activities: List[Tuple[str, int]] = field(default_factory=list)
    cases_per_day: List[Tuple[date, int]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "cases": self.total_cases,
            "events": self.total_events,
            "resources": self.total_resources,
            "activities": self.total_activities,
            "top_activities": [{"activity": a, "count": c} for a, c in self.top_activities],
            "cases_per_day": [{"date": d.isoformat(), "cases": c} for d, c in self.cases_per_day],
        }

    def to_dataframes(self) -> Dict[str, pd.DataFrame]:
        return {
            "activity_frequency": pd.DataFrame(self.top_activities, columns=["activity", "count"]),
            "cases_per_day": pd.DataFrame(
                [(d.isoformat(), c) for d, c in self.cases_per_day], columns=["date", "cases"]
            ),
        }


def event_date(timestamp: datetime) -> date:
    """Calendar day of a timestamp; aware timestamps are taken in UTC"""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.date()


def activity_frequency(events: Iterable[Event], top_n: int = None) -> List[Tuple[str, int]]:
    """
    Occurrences per activity, most frequent first (ties by label)

    Args:
        events: Events to count
        top_n: Keep only the top_n most frequent activities (all if None)
    """
    counts: Dict[str, int] = {}
    for event in events:
        counts[event.activity] = counts.get(event.activity, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked if top_n is None else ranked[:top_n]


def cases_per_day(events: Iterable[Event]) -> List[Tuple[date, int]]:
    """Distinct cases with at least one event on each calendar day, by date"""
    day_cases: Dict[date, set] = {}
    for event in events:
        day_cases.setdefault(event_date(event.timestamp), set()).add(event.case_id)
    return [(day, len(case_ids)) for day, case_ids in sorted(day_cases.items())]


def summarize_log(source: Union[EventLog, CaseView, Iterable[Event]], top_n: int = 10) -> LogSummary:
    """
    Compute the aggregate summaries of an event collection

    Args:
        source: EventLog, grouped case view, or raw events
        top_n: Number of activities in the frequency ranking

    Returns:
        LogSummary
    """
    start_time = time.time()
    events = tuple(as_events(source))

    summary = LogSummary(
        total_cases=len({e.case_id for e in events}),
        total_events=len(events),
        total_resources=len({e.resource for e in events}),
        total_activities=len({e.activity for e in events}),
        top_activities=activity_frequency(events, top_n),
        cases_per_day=cases_per_day(events),
    )

    logger.info(
        f"Log summary: {summary.total_events:,} events, {summary.total_cases:,} cases, "
        f"{summary.total_activities:,} activities, {summary.total_resources:,} resources"
    )
    logger.debug(f"Summaries computed in {time.time() - start_time:.2f}s")
    return summary
