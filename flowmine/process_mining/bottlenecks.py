#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bottleneck ranking over transitions and error-rate profiling of resources
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union, Iterable, Any

import numpy as np
import pandas as pd

from flowmine.data.event_log import Event, EventLog, CaseView, as_cases, duration_hours, is_reversed
from flowmine.exceptions import ConfigError
from flowmine.process_mining.anomalies import AnomalySource, NullAnomalySource

logger = logging.getLogger(__name__)

TRANSITION_SEPARATOR = " → "

DEFAULT_TOP_N = 8


def transition_key(source: str, target: str) -> str:
    """Display key of a transition, e.g. 'A → B'"""
    return f"{source}{TRANSITION_SEPARATOR}{target}"


@dataclass(frozen=True)
class BottleneckEntry:
    """Duration statistics of one transition, in hours"""
    transition: str
    avg_duration: float
    max_duration: float
    occurrences: int
    variability: float


@dataclass(frozen=True)
class ResourceProfile:
    """Workload and error rate of one resource"""
    resource: str
    workload: int
    errors: int
    error_rate: float


@dataclass(frozen=True)
class IssueThresholds:
    slow_transition_hours: float = 2.0
    overload_workload: int = 10
    error_rate_percent: float = 5.0
    variability_hours: float = 1.0

    @classmethod
    def from_config(cls, config) -> "IssueThresholds":
        section = config.section('bottlenecks')
        return cls(
            slow_transition_hours=float(section.get('slow_transition_hours', cls.slow_transition_hours)),
            overload_workload=int(section.get('overload_workload', cls.overload_workload)),
            error_rate_percent=float(section.get('error_rate_percent', cls.error_rate_percent)),
            variability_hours=float(section.get('variability_hours', cls.variability_hours)),
        )


@dataclass(frozen=True)
class IssueCategory:
    category: str
    count: int
    severity: str


@dataclass
class BottleneckReport:
    """
    Transition statistics and resource profiles

    `transitions` holds every transition keyed by display key (unranked);
    `bottlenecks` is the top_n slice ranked by descending average duration.
    """
    transitions: Dict[str, BottleneckEntry] = field(default_factory=dict)
    resources: List[ResourceProfile] = field(default_factory=list)
    top_n: int = DEFAULT_TOP_N
    reversed_transitions: int = 0

    @property
    def ranked(self) -> List[BottleneckEntry]:
        """All transitions by descending average duration, ties by key"""
        return sorted(self.transitions.values(), key=lambda b: (-b.avg_duration, b.transition))

    @property
    def bottlenecks(self) -> List[BottleneckEntry]:
        return self.ranked[:self.top_n]

    def resource(self, name: str) -> Optional[ResourceProfile]:
        for profile in self.resources:
            if profile.resource == name:
                return profile
        return None

    def to_dataframes(self) -> Dict[str, pd.DataFrame]:
        bottleneck_cols = ["transition", "avg_duration", "max_duration", "occurrences", "variability"]
        resource_cols = ["resource", "workload", "errors", "error_rate"]
        return {
            "bottlenecks": pd.DataFrame([vars(b) for b in self.ranked], columns=bottleneck_cols),
            "resources": pd.DataFrame([vars(r) for r in self.resources], columns=resource_cols),
        }


def _summarize_durations(transition: str, durations: List[float]) -> BottleneckEntry:
    values = np.asarray(durations, dtype=float)
    # np.std defaults to the population form (ddof=0)
    return BottleneckEntry(
        transition=transition,
        avg_duration=float(values.mean()),
        max_duration=float(values.max()),
        occurrences=len(durations),
        variability=float(values.std()),
    )


def _profile_resources(workload: Dict[str, int], errors: Dict[str, int]) -> List[ResourceProfile]:
    profiles = []
    for resource, count in workload.items():
        error_count = errors.get(resource, 0)
        if error_count > count:
            logger.warning(
                f"Resource '{resource}' reports {error_count} errors for {count} activities; capping at workload"
            )
            error_count = count
        error_rate = error_count / count * 100 if count > 0 else 0.0
        profiles.append(ResourceProfile(resource=resource, workload=count, errors=error_count, error_rate=error_rate))

    unknown = sorted(set(errors) - set(workload))
    if unknown:
        logger.debug(f"Ignoring errors for resources absent from the log: {unknown}")

    return sorted(profiles, key=lambda p: (-p.error_rate, p.resource))


def analyze_bottlenecks(cases: Union[EventLog, CaseView, Iterable[Event]],
                        top_n: int = DEFAULT_TOP_N,
                        anomaly_source: Optional[AnomalySource] = None) -> BottleneckReport:
    """
    Analyze transition durations and resource workload

    Args:
        cases: EventLog, grouped case view, or raw events
        top_n: Number of transitions in the ranked bottleneck view
        anomaly_source: Supplier of per-resource error counts (no errors if None)

    Returns:
        BottleneckReport
    """
    if top_n < 1:
        raise ConfigError(f"top_n must be at least 1, got {top_n}")

    start_time = time.time()
    logger.info("Analyzing process bottlenecks")

    case_view = as_cases(cases)
    anomaly_source = anomaly_source or NullAnomalySource()

    durations: Dict[str, List[float]] = {}
    workload: Dict[str, int] = {}
    reversed_count = 0

    for case_events in case_view.values():
        for i, event in enumerate(case_events):
            workload[event.resource] = workload.get(event.resource, 0) + 1
            if i == 0:
                continue
            prev = case_events[i - 1]
            if is_reversed(prev, event):
                reversed_count += 1
            key = transition_key(prev.activity, event.activity)
            durations.setdefault(key, []).append(duration_hours(prev, event))

    transitions = {key: _summarize_durations(key, values) for key, values in durations.items()}
    resources = _profile_resources(workload, anomaly_source.error_counts(case_view))

    report = BottleneckReport(
        transitions=transitions,
        resources=resources,
        top_n=top_n,
        reversed_transitions=reversed_count,
    )

    top = report.bottlenecks
    if top:
        logger.info(f"Slowest transition: {top[0].transition} ({top[0].avg_duration:.2f}h average)")
    logger.info(f"Found {len(transitions)} transitions and {len(resources)} resources")
    logger.info(f"Analysis completed in {time.time() - start_time:.2f}s")

    return report


def categorize_issues(report: BottleneckReport, thresholds: Optional[IssueThresholds] = None) -> List[IssueCategory]:
    """
    Count issues by category over the ranked bottlenecks and resource profiles

    Args:
        report: BottleneckReport
        thresholds: Category thresholds (defaults if None)

    Returns:
        List of IssueCategory in fixed order
    """
    thresholds = thresholds or IssueThresholds()
    top = report.bottlenecks

    return [
        IssueCategory(
            category="Process Bottlenecks",
            count=sum(1 for b in top if b.avg_duration > thresholds.slow_transition_hours),
            severity="high",
        ),
        IssueCategory(
            category="Resource Overload",
            count=sum(1 for r in report.resources if r.workload > thresholds.overload_workload),
            severity="medium",
        ),
        IssueCategory(
            category="Quality Issues",
            count=sum(1 for r in report.resources if r.error_rate > thresholds.error_rate_percent),
            severity="high",
        ),
        IssueCategory(
            category="Timing Variability",
            count=sum(1 for b in top if b.variability > thresholds.variability_hours),
            severity="low",
        ),
    ]


def issues_summary(issues: List[IssueCategory]) -> Dict[str, Any]:
    return {issue.category: {"count": issue.count, "severity": issue.severity} for issue in issues}
