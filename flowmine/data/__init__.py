"""
Event log model and tabular adapters
"""
from flowmine.data.event_log import (
    Event,
    EventLog,
    group_and_sort,
    duration_hours,
    as_cases,
)
from flowmine.data.loader import events_from_dataframe, load_event_log
