import io
import json
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

import pandas as pd
import yaml

from flowmine.cli import main, parse_arguments
from flowmine.config import Config, DEFAULT_CONFIG, load_config_from_args
from flowmine.core.runner import run_analysis, save_analysis
from flowmine.data.event_log import EventLog
from flowmine.exceptions import ConfigError, ReferenceFlowError
from flowmine.process_mining.anomalies import StaticAnomalySource
from flowmine.tests.helpers import make_case

IDEAL = ["Start Process", "Review Application", "Analyze Data", "Make Decision", "Complete Process"]


def sample_events():
    return (
        make_case("c1", IDEAL, gap_hours=1.0, resources=["ann", "bob", "bob", "eve", "ann"])
        + make_case("c2", ["Start Process", "Analyze Data", "Review Application", "Complete Process"],
                    gap_hours=4.0, resources=["ann", "bob", "bob", "ann"])
        + make_case("c3", ["Start Process"], resources=["eve"])
    )


class TestConfig(unittest.TestCase):
    """Test configuration loading and overrides."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_defaults(self):
        config = Config()
        self.assertEqual(config.get('conformance.ideal_flow'), IDEAL)
        self.assertEqual(config.get('bottlenecks.top_n'), 8)
        self.assertIsNone(config.get('missing.key'))
        self.assertEqual(config.get('missing.key', 5), 5)

    def test_defaults_not_shared(self):
        config = Config()
        config.set('bottlenecks.top_n', 3)
        self.assertEqual(DEFAULT_CONFIG['bottlenecks']['top_n'], 8)

    def test_yaml_file_merged_over_defaults(self):
        path = os.path.join(self.test_dir, "config.yaml")
        with open(path, "w") as f:
            yaml.safe_dump({"conformance": {"ideal_flow": ["A", "B"]}, "bottlenecks": {"top_n": 3}}, f)
        config = Config(config_file=path)
        self.assertEqual(config.get('conformance.ideal_flow'), ["A", "B"])
        self.assertEqual(config.get('conformance.order_penalty'), 0.1)
        self.assertEqual(config.get('bottlenecks.top_n'), 3)

    def test_args_override_file(self):
        config = Config(args={"top_n": 4, "ideal_flow": None})
        self.assertEqual(config.get('bottlenecks.top_n'), 4)
        self.assertEqual(config.get('conformance.ideal_flow'), IDEAL)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            Config(config_file=os.path.join(self.test_dir, "absent.yaml"))

    def test_non_mapping_file(self):
        path = os.path.join(self.test_dir, "list.yaml")
        with open(path, "w") as f:
            f.write("- a\n- b\n")
        with self.assertRaises(ConfigError):
            Config(config_file=path)

    def test_save_round_trip(self):
        path = os.path.join(self.test_dir, "out", "config.yaml")
        config = Config(args={"top_n": 5})
        config.save(path)
        self.assertEqual(Config(config_file=path).get('bottlenecks.top_n'), 5)

    def test_from_cli_args(self):
        args = parse_arguments(["analyze", "log.csv", "--ideal-flow", "A, B ,C", "--top-n", "2"])
        config = load_config_from_args(args)
        self.assertEqual(config.get('conformance.ideal_flow'), ["A", "B", "C"])
        self.assertEqual(config.get('bottlenecks.top_n'), 2)


class TestRunAnalysis(unittest.TestCase):
    """Test the full analysis pipeline."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.log = EventLog(sample_events())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_all_outputs_present(self):
        result = run_analysis(self.log)
        self.assertEqual(result.summary.total_events, 10)
        self.assertEqual(sum(n.frequency for n in result.flow_graph.nodes), 10)
        self.assertEqual(result.conformance.total_cases, 3)
        self.assertEqual(result.conformance.result_for("c1").score, 100)
        self.assertEqual(len(result.issues), 4)
        self.assertEqual(result.bottlenecks.bottlenecks[0].avg_duration, 4.0)

    def test_accepts_raw_events(self):
        result = run_analysis(sample_events())
        self.assertEqual(result.summary.total_cases, 3)

    def test_default_errors_are_zero(self):
        result = run_analysis(self.log)
        self.assertTrue(all(p.error_rate == 0 for p in result.bottlenecks.resources))

    def test_injected_anomaly_source(self):
        result = run_analysis(self.log, anomaly_source=StaticAnomalySource({"eve": 1}))
        self.assertEqual(result.bottlenecks.resources[0].resource, "eve")
        self.assertAlmostEqual(result.bottlenecks.resources[0].error_rate, 50.0)

    def test_invalid_ideal_flow_raises(self):
        config = Config()
        config.set('conformance.ideal_flow', ["A", "A"])
        with self.assertRaises(ReferenceFlowError):
            run_analysis(self.log, config)

    def test_invalid_ideal_flow_rejected_before_analysis(self):
        config = Config()
        config.set('conformance.ideal_flow', [])
        with mock.patch("flowmine.core.runner.build_flow_graph") as build:
            with self.assertRaises(ReferenceFlowError):
                run_analysis(self.log, config)
        build.assert_not_called()

    def test_empty_log(self):
        result = run_analysis(EventLog([]))
        self.assertEqual(result.summary.total_events, 0)
        self.assertEqual(result.flow_graph.nodes, [])
        self.assertEqual(result.conformance.results, [])
        self.assertEqual(result.bottlenecks.transitions, {})
        self.assertEqual(result.metrics()["bottlenecks"]["top_bottleneck_hours"], 0.0)

    def test_save_analysis(self):
        result = run_analysis(self.log)
        metrics_path = save_analysis(result, self.test_dir)

        with open(metrics_path) as f:
            metrics = json.load(f)
        self.assertEqual(metrics["dataset"]["events"], 10)
        self.assertEqual(metrics["conformance"]["total_cases"], 3)

        analysis_dir = os.path.join(self.test_dir, "analysis")
        for name in ["flow_nodes", "flow_edges", "conformance", "bottlenecks",
                     "resources", "activity_frequency", "cases_per_day"]:
            self.assertTrue(os.path.exists(os.path.join(analysis_dir, f"{name}.csv")), name)

        edges = pd.read_csv(os.path.join(analysis_dir, "flow_edges.csv"))
        self.assertEqual(edges["frequency"].sum(), 7)


class TestCli(unittest.TestCase):
    """Test the command-line entry point."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.csv_path = os.path.join(self.test_dir, "log.csv")
        rows = [
            {"case_id": e.case_id, "activity": e.activity,
             "timestamp": e.timestamp.isoformat(), "resource": e.resource}
            for e in sample_events()
        ]
        pd.DataFrame(rows).to_csv(self.csv_path, index=False)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_analyze_writes_results(self):
        output_dir = os.path.join(self.test_dir, "out")
        status = main(["analyze", self.csv_path, "--output-dir", output_dir, "--top-n", "2"])
        self.assertEqual(status, 0)
        self.assertTrue(os.path.exists(os.path.join(output_dir, "metrics.json")))
        self.assertTrue(os.path.exists(os.path.join(output_dir, "config.yaml")))
        bottlenecks = pd.read_csv(os.path.join(output_dir, "analysis", "bottlenecks.csv"))
        self.assertEqual(len(bottlenecks), 7)

    def test_invalid_ideal_flow_exit_code(self):
        output_dir = os.path.join(self.test_dir, "out")
        status = main(["analyze", self.csv_path, "--output-dir", output_dir, "--ideal-flow", "A,A"])
        self.assertEqual(status, 1)

    def test_summary_printed_under_section_header(self):
        output_dir = os.path.join(self.test_dir, "out")
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            status = main(["analyze", self.csv_path, "--output-dir", output_dir])
        self.assertEqual(status, 0)
        self.assertIn("Analysis Summary", buffer.getvalue())
        self.assertIn("Overall conformance", buffer.getvalue())

    def test_empty_csv_exit_code(self):
        empty_csv = os.path.join(self.test_dir, "empty.csv")
        open(empty_csv, "w").close()
        status = main(["analyze", empty_csv, "--output-dir", os.path.join(self.test_dir, "out")])
        self.assertEqual(status, 1)

    def test_missing_input_exit_code(self):
        output_dir = os.path.join(self.test_dir, "out")
        status = main(["analyze", os.path.join(self.test_dir, "absent.csv"), "--output-dir", output_dir])
        self.assertEqual(status, 1)


if __name__ == "__main__":
    unittest.main()
