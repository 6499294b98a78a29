# Main flowmine/__init__.py
"""
FlowMine: descriptive process mining over flat event logs

Builds activity flow graphs with frequency and duration statistics, scores
cases against a reference flow, and ranks bottleneck transitions and
resources by error rate.
"""

__version__ = '0.1.0'

from flowmine.exceptions import FlowMineError, EventLogError, ReferenceFlowError, ConfigError
from flowmine.config import Config
from flowmine.data.event_log import Event, EventLog, group_and_sort
from flowmine.data.loader import events_from_dataframe, load_event_log

# Process Mining Core
from flowmine.process_mining.flow_graph import build_flow_graph
from flowmine.process_mining.conformance import check_conformance, ConformanceChecker
from flowmine.process_mining.bottlenecks import analyze_bottlenecks, categorize_issues
from flowmine.process_mining.summaries import summarize_log
from flowmine.process_mining.anomalies import (
    AnomalySource,
    NullAnomalySource,
    StaticAnomalySource,
    RandomAnomalySource,
)

from flowmine.core.runner import run_analysis, save_analysis
