"""
Per-resource error signals consumed by the resource analysis.

Error counts come from outside the event log (a quality or incident system).
The default source reports no errors so analyses stay deterministic.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

import numpy as np

from flowmine.data.event_log import CaseView
from flowmine.exceptions import ConfigError

logger = logging.getLogger(__name__)


class AnomalySource(ABC):
    """Supplies error counts per resource for a case view"""

    @abstractmethod
    def error_counts(self, cases: CaseView) -> Dict[str, int]:
        """
        Args:
            cases: Grouped, time-ordered case view

        Returns:
            Mapping of resource to error count; absent resources have none
        """


class NullAnomalySource(AnomalySource):
    """Reports zero errors for every resource"""

    def error_counts(self, cases: CaseView) -> Dict[str, int]:
        return {}


class StaticAnomalySource(AnomalySource):
    """Error counts taken from an external feed, keyed by resource"""

    def __init__(self, counts: Mapping[str, int]):
        for resource, count in counts.items():
            if count < 0:
                raise ConfigError(f"Negative error count for resource '{resource}': {count}")
        self.counts = {str(resource): int(count) for resource, count in counts.items()}

    def error_counts(self, cases: CaseView) -> Dict[str, int]:
        return dict(self.counts)


class RandomAnomalySource(AnomalySource):
    """
    Synthetic errors for demo data: each event is flagged with probability `rate`

    Seeded runs are reproducible; unseeded runs are not.
    """

    def __init__(self, rate: float = 0.1, seed: Optional[int] = None):
        if not 0.0 <= rate <= 1.0:
            raise ConfigError(f"Anomaly rate must be in [0, 1], got {rate}")
        self.rate = rate
        self.seed = seed

    def error_counts(self, cases: CaseView) -> Dict[str, int]:
        rng = np.random.default_rng(self.seed)
        counts: Dict[str, int] = {}
        for case_events in cases.values():
            draws = rng.random(len(case_events))
            for event, draw in zip(case_events, draws):
                if draw < self.rate:
                    counts[event.resource] = counts.get(event.resource, 0) + 1
        logger.debug(f"Synthesized {sum(counts.values())} errors across {len(counts)} resources")
        return counts


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Anomaly seed must be an integer, got {value!r}") from e


def anomaly_source_from_config(config) -> AnomalySource:
    """
    Create the anomaly source named in the 'anomalies' config section

    Args:
        config: Config object

    Returns:
        AnomalySource instance
    """
    section = config.section('anomalies')
    source = section.get('source', 'none')

    if source in (None, 'none'):
        return NullAnomalySource()
    elif source == 'random':
        logger.warning("Using randomly generated resource errors; results are synthetic")
        return RandomAnomalySource(rate=float(section.get('rate', 0.1)), seed=_optional_int(section.get('seed')))
    elif source == 'static':
        return StaticAnomalySource(section.get('counts', {}))
    else:
        raise ConfigError(f"Unknown anomaly source: {source}")
