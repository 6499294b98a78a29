import os
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

import pandas as pd

from flowmine.data.event_log import Event, EventLog, group_and_sort, as_cases, duration_hours
from flowmine.data.loader import events_from_dataframe, load_event_log
from flowmine.exceptions import EventLogError
from flowmine.tests.helpers import make_event, make_case


class TestEvent(unittest.TestCase):
    """Test event validation."""

    def test_valid_event(self):
        event = make_event("c1", "Start", 0, "bob")
        self.assertEqual(event.case_id, "c1")
        self.assertEqual(event.resource, "bob")

    def test_empty_fields_rejected(self):
        ts = datetime(2024, 1, 1)
        with self.assertRaises(EventLogError):
            Event(case_id="", activity="A", timestamp=ts, resource="r")
        with self.assertRaises(EventLogError):
            Event(case_id="c", activity="", timestamp=ts, resource="r")
        with self.assertRaises(EventLogError):
            Event(case_id="c", activity="A", timestamp=ts, resource=None)

    def test_non_datetime_timestamp_rejected(self):
        with self.assertRaises(EventLogError):
            Event(case_id="c", activity="A", timestamp="2024-01-01", resource="r")

    def test_events_are_immutable(self):
        event = make_event("c1", "Start")
        with self.assertRaises(AttributeError):
            event.activity = "Other"

    def test_event_log_error_is_value_error(self):
        self.assertTrue(issubclass(EventLogError, ValueError))


class TestGroupAndSort(unittest.TestCase):
    """Test grouping events into time-ordered cases."""

    def test_empty_input(self):
        self.assertEqual(group_and_sort([]), {})

    def test_groups_and_orders_by_timestamp(self):
        events = [
            make_event("c1", "B", 2),
            make_event("c2", "X", 1),
            make_event("c1", "A", 1),
            make_event("c1", "C", 3),
        ]
        cases = group_and_sort(events)
        self.assertEqual(set(cases), {"c1", "c2"})
        self.assertEqual([e.activity for e in cases["c1"]], ["A", "B", "C"])
        self.assertEqual([e.activity for e in cases["c2"]], ["X"])

    def test_equal_timestamps_keep_input_order(self):
        events = [
            make_event("c1", "Late", 5),
            make_event("c1", "First", 1),
            make_event("c1", "Second", 1),
            make_event("c1", "Third", 1),
        ]
        cases = group_and_sort(events)
        self.assertEqual([e.activity for e in cases["c1"]], ["First", "Second", "Third", "Late"])

    def test_single_event_case(self):
        cases = group_and_sort([make_event("solo", "A")])
        self.assertEqual(len(cases["solo"]), 1)

    def test_duration_hours_is_absolute(self):
        early = make_event("c", "A", 0)
        late = make_event("c", "B", 2.5)
        self.assertAlmostEqual(duration_hours(early, late), 2.5)
        self.assertAlmostEqual(duration_hours(late, early), 2.5)


class TestEventLog(unittest.TestCase):
    """Test the memoized case view."""

    def setUp(self):
        self.events = make_case("c1", ["A", "B"]) + make_case("c2", ["A"])
        self.log = EventLog(self.events)

    def test_cases_computed_once(self):
        self.assertIs(self.log.cases, self.log.cases)

    def test_cases_view_is_read_only(self):
        with self.assertRaises(TypeError):
            self.log.cases["c3"] = ()

    def test_length_and_iteration(self):
        self.assertEqual(len(self.log), 3)
        self.assertEqual(list(self.log), self.events)

    def test_rejects_non_events(self):
        with self.assertRaises(EventLogError):
            EventLog([{"case_id": "c1"}])

    def test_rejects_mixed_naive_and_aware_timestamps(self):
        events = [
            Event("c1", "A", datetime(2024, 1, 1, 8), "r1"),
            Event("c1", "B", datetime(2024, 1, 1, 9, tzinfo=timezone.utc), "r1"),
        ]
        with self.assertRaises(EventLogError):
            EventLog(events)
        with self.assertRaises(EventLogError):
            group_and_sort(events)

    def test_aware_timestamps_accepted(self):
        events = [
            Event("c1", "B", datetime(2024, 1, 1, 9, tzinfo=timezone.utc), "r1"),
            Event("c1", "A", datetime(2024, 1, 1, 9, tzinfo=timezone(timedelta(hours=2))), "r1"),
        ]
        log = EventLog(events)
        self.assertEqual([e.activity for e in log.cases["c1"]], ["A", "B"])

    def test_as_cases_accepts_all_inputs(self):
        from_log = as_cases(self.log)
        from_events = as_cases(self.events)
        from_mapping = as_cases(dict(from_events))
        self.assertEqual(dict(from_log), from_events)
        self.assertEqual(from_mapping, from_events)


class TestDataFrameAdapter(unittest.TestCase):
    """Test conversion of tabular data into events."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.test_csv = os.path.join(self.test_dir, "test_data.csv")
        self.test_df = pd.DataFrame({
            "case_id": ["1", "1", "2"],
            "activity": ["start", "end", "start"],
            "resource": ["user_a", "user_b", "user_c"],
            "timestamp": ["2023-01-01 10:00:00", "2023-01-01 10:30:00", "2023-01-02 12:00:00"],
        })
        self.test_df.to_csv(self.test_csv, index=False)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_events_from_dataframe(self):
        log = events_from_dataframe(self.test_df)
        self.assertEqual(len(log), 3)
        self.assertEqual(set(log.cases), {"1", "2"})
        self.assertEqual(log.events[1].timestamp, datetime(2023, 1, 1, 10, 30))

    def test_missing_column(self):
        with self.assertRaises(EventLogError):
            events_from_dataframe(self.test_df.drop(columns=["resource"]))

    def test_null_field(self):
        df = self.test_df.copy()
        df.loc[1, "activity"] = None
        with self.assertRaises(EventLogError):
            events_from_dataframe(df)

    def test_unparseable_timestamp(self):
        df = self.test_df.copy()
        df["timestamp"] = ["not a date", "2023-01-01", "2023-01-01"]
        with self.assertRaises(EventLogError):
            events_from_dataframe(df)

    def test_empty_dataframe(self):
        log = events_from_dataframe(self.test_df.iloc[0:0])
        self.assertEqual(len(log), 0)
        self.assertEqual(dict(log.cases), {})

    def test_offsets_across_dst_change_normalized_to_utc(self):
        df = self.test_df.copy()
        df["timestamp"] = [
            "2024-03-30T10:00:00+01:00",
            "2024-03-31T10:00:00+02:00",
            "2024-03-31T12:00:00Z",
        ]
        log = events_from_dataframe(df)
        first, second = log.cases["1"]
        self.assertEqual(first.timestamp, datetime(2024, 3, 30, 9, tzinfo=timezone.utc))
        self.assertEqual(second.timestamp, datetime(2024, 3, 31, 8, tzinfo=timezone.utc))
        self.assertAlmostEqual(duration_hours(first, second), 23.0)

    def test_mixed_offset_and_naive_timestamps(self):
        df = self.test_df.copy()
        df["timestamp"] = ["2024-03-30T10:00:00+01:00", "2024-03-30 11:00:00", "2024-03-30 12:00:00"]
        with self.assertRaises(EventLogError):
            events_from_dataframe(df)

    def test_empty_csv(self):
        empty_csv = os.path.join(self.test_dir, "empty.csv")
        open(empty_csv, "w").close()
        with self.assertRaises(EventLogError):
            load_event_log(empty_csv)

    def test_load_event_log_keeps_case_ids_as_strings(self):
        log = load_event_log(self.test_csv)
        self.assertEqual(len(log), 3)
        self.assertIn("1", log.cases)
        self.assertEqual([e.activity for e in log.cases["1"]], ["start", "end"])


if __name__ == "__main__":
    unittest.main()
