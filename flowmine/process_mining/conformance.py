"""
Rule-based conformance checking of cases against a reference activity flow
"""

import math
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Tuple, Union, Iterable

import pandas as pd

from flowmine.data.event_log import Event, EventLog, CaseView, as_cases
from flowmine.exceptions import ConfigError, ReferenceFlowError

logger = logging.getLogger(__name__)


class DeviationKind(Enum):
    """Types of conformance deviations"""
    EXTRA_ACTIVITIES = "Extra activities detected"
    MISSING_ACTIVITIES = "Missing activities"
    WRONG_ORDER = "Wrong activity order"


class ConformanceStatus(Enum):
    """Per-case conformance classification"""
    CONFORMING = "conforming"
    PARTIALLY_CONFORMING = "partially-conforming"
    NON_CONFORMING = "non-conforming"


@dataclass(frozen=True)
class ConformanceSettings:
    """
    Tunable constants of the conformance rules

    Attributes:
        extra_tolerance: A case longer than len(ideal) + extra_tolerance has extra activities
        missing_tolerance: A case shorter than len(ideal) - missing_tolerance has missing activities
        order_penalty: Score deducted per order inversion
        conforming_threshold: Minimum score for a conforming case (which also needs no deviations)
        partial_threshold: Minimum score for a partially conforming case
    """
    extra_tolerance: int = 2
    missing_tolerance: int = 1
    order_penalty: float = 0.1
    conforming_threshold: float = 0.8
    partial_threshold: float = 0.5

    def __post_init__(self):
        if self.extra_tolerance < 0 or self.missing_tolerance < 0:
            raise ConfigError("Conformance tolerances must be non-negative")
        if self.order_penalty < 0:
            raise ConfigError("order_penalty must be non-negative")
        if not 0 <= self.partial_threshold <= self.conforming_threshold <= 1:
            raise ConfigError(
                "Thresholds must satisfy 0 <= partial_threshold <= conforming_threshold <= 1"
            )

    @classmethod
    def from_config(cls, config) -> "ConformanceSettings":
        section = config.section('conformance')
        return cls(
            extra_tolerance=int(section.get('extra_tolerance', cls.extra_tolerance)),
            missing_tolerance=int(section.get('missing_tolerance', cls.missing_tolerance)),
            order_penalty=float(section.get('order_penalty', cls.order_penalty)),
            conforming_threshold=float(section.get('conforming_threshold', cls.conforming_threshold)),
            partial_threshold=float(section.get('partial_threshold', cls.partial_threshold)),
        )


@dataclass(frozen=True)
class ConformanceResult:
    """Conformance outcome of one case"""
    case_id: str
    status: ConformanceStatus
    score: int
    deviations: Tuple[str, ...] = ()
    coverage: float = 0.0
    order_violations: int = 0


@dataclass
class ConformanceReport:
    """Per-case results plus the deviation tally across cases"""
    ideal_flow: Tuple[str, ...]
    results: List[ConformanceResult] = field(default_factory=list)
    deviation_counts: Dict[str, int] = field(default_factory=dict)

    def _count(self, status: ConformanceStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def total_cases(self) -> int:
        return len(self.results)

    @property
    def conforming_cases(self) -> int:
        return self._count(ConformanceStatus.CONFORMING)

    @property
    def partially_conforming_cases(self) -> int:
        return self._count(ConformanceStatus.PARTIALLY_CONFORMING)

    @property
    def non_conforming_cases(self) -> int:
        return self._count(ConformanceStatus.NON_CONFORMING)

    @property
    def overall_conformance(self) -> int:
        """Share of conforming cases, as a rounded percentage"""
        if not self.results:
            return 0
        return round_half_up(self.conforming_cases / self.total_cases * 100)

    def result_for(self, case_id: str) -> Optional[ConformanceResult]:
        for result in self.results:
            if result.case_id == case_id:
                return result
        return None

    def summary(self) -> Dict[str, Any]:
        return {
            "total_cases": self.total_cases,
            "conforming_cases": self.conforming_cases,
            "partially_conforming_cases": self.partially_conforming_cases,
            "non_conforming_cases": self.non_conforming_cases,
            "overall_conformance": self.overall_conformance,
            "deviations": dict(self.deviation_counts),
        }

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "case_id": r.case_id,
                    "status": r.status.value,
                    "score": r.score,
                    "deviations": "; ".join(r.deviations),
                    "coverage": r.coverage,
                    "order_violations": r.order_violations,
                }
                for r in self.results
            ],
            columns=["case_id", "status", "score", "deviations", "coverage", "order_violations"],
        )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_ideal_flow(ideal_flow: Sequence[str]) -> Tuple[str, ...]:
    """
    Check a reference flow and return it as a tuple

    Raises:
        ReferenceFlowError: if the flow is empty or has empty or duplicate labels
    """
    if isinstance(ideal_flow, str):
        raise ReferenceFlowError("Ideal flow must be a sequence of labels, not a single string")
    flow = tuple(ideal_flow)
    if not flow:
        raise ReferenceFlowError("Ideal flow must contain at least one activity")
    for label in flow:
        if not isinstance(label, str) or not label:
            raise ReferenceFlowError(f"Ideal flow contains an empty label: {label!r}")
    duplicates = sorted(label for label in set(flow) if flow.count(label) > 1)
    if duplicates:
        raise ReferenceFlowError(f"Ideal flow contains duplicate labels: {duplicates}")
    return flow


class ConformanceChecker:
    """Scores activity sequences against a fixed reference flow"""

    def __init__(self, ideal_flow: Sequence[str], settings: Optional[ConformanceSettings] = None):
        """
        Initialize conformance checker

        Args:
            ideal_flow: Ordered, distinct activity labels of the expected process
            settings: Rule constants (defaults if None)
        """
        self.ideal_flow = validate_ideal_flow(ideal_flow)
        self.settings = settings or ConformanceSettings()
        self._positions = {label: idx for idx, label in enumerate(self.ideal_flow)}

    def count_order_violations(self, activities: Sequence[str]) -> int:
        """Adjacent pairs that step backwards in the reference flow"""
        violations = 0
        for prev, curr in zip(activities, activities[1:]):
            prev_idx = self._positions.get(prev, -1)
            curr_idx = self._positions.get(curr, -1)
            if prev_idx >= 0 and curr_idx >= 0 and curr_idx < prev_idx:
                violations += 1
        return violations

    def check_case(self, case_id: str, activities: Sequence[str]) -> ConformanceResult:
        """
        Check one case's activity sequence

        Args:
            case_id: Case identifier
            activities: Time-ordered activity labels

        Returns:
            ConformanceResult for the case
        """
        n = len(activities)
        m = len(self.ideal_flow)

        # Repeated activities each count toward coverage
        coverage = sum(1 for a in activities if a in self._positions) / m

        deviations = []
        if n > m + self.settings.extra_tolerance:
            deviations.append(DeviationKind.EXTRA_ACTIVITIES.value)
        if n < m - self.settings.missing_tolerance:
            deviations.append(DeviationKind.MISSING_ACTIVITIES.value)

        order_violations = self.count_order_violations(activities)
        if order_violations > 0:
            deviations.append(DeviationKind.WRONG_ORDER.value)

        score = coverage - self.settings.order_penalty * order_violations
        score = min(1.0, max(0.0, score))

        if score >= self.settings.conforming_threshold and not deviations:
            status = ConformanceStatus.CONFORMING
        elif score >= self.settings.partial_threshold:
            status = ConformanceStatus.PARTIALLY_CONFORMING
        else:
            status = ConformanceStatus.NON_CONFORMING

        return ConformanceResult(
            case_id=case_id,
            status=status,
            score=round_half_up(score * 100),
            deviations=tuple(deviations),
            coverage=coverage,
            order_violations=order_violations,
        )

    def check(self, cases: Union[EventLog, CaseView, Iterable[Event]]) -> ConformanceReport:
        """
        Check every case of a log

        Args:
            cases: EventLog, grouped case view, or raw events

        Returns:
            ConformanceReport with results ordered by case id
        """
        start_time = time.time()
        logger.info(f"Checking conformance against a {len(self.ideal_flow)}-step reference flow")

        case_view = as_cases(cases)
        report = ConformanceReport(ideal_flow=self.ideal_flow)

        for case_id in sorted(case_view):
            activities = [event.activity for event in case_view[case_id]]
            result = self.check_case(case_id, activities)
            report.results.append(result)
            # Once per kind per case
            for deviation in result.deviations:
                report.deviation_counts[deviation] = report.deviation_counts.get(deviation, 0) + 1

        logger.info(
            f"Conformance: {report.conforming_cases} conforming, "
            f"{report.partially_conforming_cases} partial, "
            f"{report.non_conforming_cases} non-conforming of {report.total_cases} cases"
        )
        logger.debug(f"Deviation counts: {report.deviation_counts}")
        logger.info(f"Analysis completed in {time.time() - start_time:.2f}s")

        return report


def check_conformance(cases: Union[EventLog, CaseView, Iterable[Event]],
                      ideal_flow: Sequence[str],
                      settings: Optional[ConformanceSettings] = None) -> ConformanceReport:
    """
    Check conformance of every case against an ideal flow

    Args:
        cases: EventLog, grouped case view, or raw events
        ideal_flow: Ordered, distinct activity labels
        settings: Rule constants (defaults if None)

    Returns:
        ConformanceReport
    """
    return ConformanceChecker(ideal_flow, settings).check(cases)
