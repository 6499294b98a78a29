#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Core runner module for FlowMine
Runs every analyzer over one event log and collects their outputs
"""

import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional, Union, Iterable

from flowmine.config import Config
from flowmine.core.reporting import save_metrics, save_tables
from flowmine.data.event_log import Event, EventLog
from flowmine.process_mining.anomalies import AnomalySource, anomaly_source_from_config
from flowmine.process_mining.bottlenecks import (
    BottleneckReport,
    IssueCategory,
    IssueThresholds,
    analyze_bottlenecks,
    categorize_issues,
    issues_summary,
)
from flowmine.process_mining.conformance import (
    ConformanceReport,
    ConformanceSettings,
    check_conformance,
    validate_ideal_flow,
)
from flowmine.process_mining.flow_graph import FlowGraph, build_flow_graph
from flowmine.process_mining.summaries import LogSummary, summarize_log

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    summary: LogSummary
    flow_graph: FlowGraph
    conformance: ConformanceReport
    bottlenecks: BottleneckReport
    issues: List[IssueCategory] = field(default_factory=list)
    duration_seconds: float = 0.0

    def metrics(self) -> Dict[str, Any]:
        """Compact JSON-friendly overview of every analysis"""
        top = self.bottlenecks.bottlenecks
        return {
            "dataset": self.summary.as_dict(),
            "flow": {
                "activities": len(self.flow_graph.nodes),
                "transitions": len(self.flow_graph.edges),
                "reversed_transitions": self.flow_graph.reversed_transitions,
            },
            "conformance": self.conformance.summary(),
            "bottlenecks": {
                "transitions": len(self.bottlenecks.transitions),
                "top": [vars(b) for b in top],
                "top_bottleneck_hours": top[0].avg_duration if top else 0.0,
            },
            "issues": issues_summary(self.issues),
            "duration_seconds": self.duration_seconds,
        }

    def tables(self) -> Dict[str, Any]:
        """Every output as a named dataframe"""
        nodes_df, edges_df = self.flow_graph.to_dataframes()
        tables = {
            "flow_nodes": nodes_df,
            "flow_edges": edges_df,
            "conformance": self.conformance.to_dataframe(),
        }
        tables.update(self.bottlenecks.to_dataframes())
        tables.update(self.summary.to_dataframes())
        return tables


def run_analysis(log: Union[EventLog, Iterable[Event]],
                 config: Optional[Config] = None,
                 anomaly_source: Optional[AnomalySource] = None,
                 verbose: bool = False) -> AnalysisResult:
    """
    Run all analyzers over one event log

    Args:
        log: EventLog or raw events
        config: Configuration (defaults if None)
        anomaly_source: Overrides the anomaly source named in the config
        verbose: Whether to show progress bars

    Returns:
        AnalysisResult
    """
    start_time = time.time()
    config = config or Config()
    if not isinstance(log, EventLog):
        log = EventLog(log)

    logger.info(f"Starting analysis of {len(log):,} events")

    # Validate inputs before any work is done
    ideal_flow = validate_ideal_flow(config.get('conformance.ideal_flow'))
    settings = ConformanceSettings.from_config(config)
    thresholds = IssueThresholds.from_config(config)
    anomaly_source = anomaly_source or anomaly_source_from_config(config)

    summary = summarize_log(log, top_n=int(config.get('summaries.top_activities', 10)))
    flow_graph = build_flow_graph(log, verbose=verbose)
    conformance = check_conformance(log, ideal_flow, settings)
    bottlenecks = analyze_bottlenecks(
        log,
        top_n=int(config.get('bottlenecks.top_n', 8)),
        anomaly_source=anomaly_source,
    )
    issues = categorize_issues(bottlenecks, thresholds)

    duration = time.time() - start_time
    logger.info(f"Analysis completed in {duration:.2f}s")

    return AnalysisResult(
        summary=summary,
        flow_graph=flow_graph,
        conformance=conformance,
        bottlenecks=bottlenecks,
        issues=issues,
        duration_seconds=duration,
    )


def save_analysis(result: AnalysisResult, output_dir: Union[str, Path]) -> Path:
    """
    Write analysis tables as CSV and metrics as JSON

    Args:
        result: AnalysisResult
        output_dir: Output directory

    Returns:
        Path to the metrics file
    """
    output_dir = Path(output_dir)
    save_tables(result.tables(), output_dir / "analysis")
    return save_metrics(result.metrics(), output_dir, "metrics.json")
