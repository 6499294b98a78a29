"""
Process mining analyzers: flow graph, conformance, bottlenecks and summaries
"""
from flowmine.process_mining.flow_graph import FlowNode, FlowEdge, FlowGraph, build_flow_graph
from flowmine.process_mining.conformance import (
    DeviationKind,
    ConformanceStatus,
    ConformanceSettings,
    ConformanceResult,
    ConformanceReport,
    ConformanceChecker,
    check_conformance,
)
from flowmine.process_mining.anomalies import (
    AnomalySource,
    NullAnomalySource,
    StaticAnomalySource,
    RandomAnomalySource,
)
from flowmine.process_mining.bottlenecks import (
    BottleneckEntry,
    ResourceProfile,
    BottleneckReport,
    IssueCategory,
    IssueThresholds,
    analyze_bottlenecks,
    categorize_issues,
)
from flowmine.process_mining.summaries import LogSummary, summarize_log
