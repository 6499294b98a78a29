"""
Event builders shared by the test modules
"""
from datetime import datetime, timedelta

from flowmine.data.event_log import Event

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)


def make_event(case_id, activity, hours=0.0, resource="alice"):
    return Event(
        case_id=case_id,
        activity=activity,
        timestamp=BASE_TIME + timedelta(hours=hours),
        resource=resource,
    )


def make_case(case_id, activities, gap_hours=1.0, resources=None, start_hours=0.0):
    """Events of one case, evenly spaced gap_hours apart"""
    resources = resources or ["alice"] * len(activities)
    return [
        make_event(case_id, activity, start_hours + i * gap_hours, resource)
        for i, (activity, resource) in enumerate(zip(activities, resources))
    ]
