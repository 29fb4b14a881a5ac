import unittest
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from login_anomaly.data.records import LoginFeatures, LoginRecord
from login_anomaly.detectors.ownership import (
    OwnershipChange,
    OwnershipTracker,
    dominant_user,
)
from login_anomaly.reporting import CollectingReportSink, EventKind


def login(user, computer, stamp):
    return LoginFeatures.from_record(
        LoginRecord(user, computer, datetime.strptime(stamp, "%Y-%m-%d %H:%M"))
    )


class TestOwnershipTracker(unittest.TestCase):

    def setUp(self):
        self.sink = CollectingReportSink()
        self.tracker = OwnershipTracker(sink=self.sink)
        # alice owns host1 in January, bob in February
        self.batch = [
            login("bob", "host1", "2024-02-01 09:00"),
            login("alice", "host1", "2024-01-02 09:00"),
            login("alice", "host1", "2024-01-03 09:00"),
            login("bob", "host1", "2024-01-04 09:00"),
            login("alice", "host1", "2024-01-05 09:00"),
            login("bob", "host1", "2024-02-02 09:00"),
            login("carol", "host1", "2024-02-03 09:00"),
            login("bob", "host1", "2024-02-05 09:00"),
            login("alice", "host1", "2024-02-06 09:00"),
        ]

    def test_new_then_change(self):
        """One new-owner event for alice, one change alice -> bob."""
        report = self.tracker.detect(self.batch)

        self.assertEqual(len(report.events), 2)
        new, change = report.events
        self.assertEqual((new.kind, new.month, new.computer, new.owner),
                         (OwnershipChange.NEW, "2024-01", "host1", "alice"))
        self.assertEqual((change.kind, change.month, change.previous, change.owner),
                         (OwnershipChange.CHANGE, "2024-02", "alice", "bob"))

        self.assertIn("NEW: host1 -> alice", self.sink.of_kind(EventKind.INFO))
        self.assertIn("CHANGE: host1 from alice to bob", self.sink.of_kind(EventKind.WARNING))

    def test_monthly_state(self):
        report = self.tracker.detect(self.batch)
        self.assertEqual(report.state.monthly_owner, {
            ("host1", "2024-01"): "alice",
            ("host1", "2024-02"): "bob",
        })
        self.assertEqual(report.state.last_known_owner, {"host1": "bob"})
        self.assertEqual(report.summary, [("host1", "bob")])

    def test_anomalies_against_monthly_owner(self):
        """Every login by a non-owner of its computer-month, in time order."""
        report = self.tracker.detect(self.batch)
        flagged = [(a.user, a.features.timestamp.strftime("%Y-%m-%d")) for a in report.anomalies]

        self.assertEqual(flagged, [
            ("bob", "2024-01-04"),
            ("carol", "2024-02-03"),
            ("alice", "2024-02-06"),
        ])
        february = [a for a in report.anomalies if a.features.month == "2024-02"]
        self.assertTrue(all(a.usual_owner == "bob" for a in february))
        self.assertEqual(len(self.sink.of_kind(EventKind.ANOMALY)), 3)

    def test_case_insensitive_owner(self):
        """A change in letter case is not a change of owner."""
        report = self.tracker.detect([
            login("Alice", "host1", "2024-01-02 09:00"),
            login("ALICE", "host1", "2024-02-02 09:00"),
            login("alice", "host1", "2024-02-03 09:00"),
        ])
        self.assertEqual([e.kind for e in report.events], [OwnershipChange.NEW])
        self.assertEqual(report.anomalies, [])
        self.assertIn("No ownership changes", self.sink.of_kind(EventKind.INFO))
        self.assertIn("No ownership anomalies", self.sink.of_kind(EventKind.SUCCESS))

    def test_summary_sorted_by_computer(self):
        report = self.tracker.detect([
            login("zed", "ws-b", "2024-01-02 09:00"),
            login("amy", "ws-a", "2024-01-02 10:00"),
            login("kim", "ws-c", "2024-01-02 11:00"),
        ])
        self.assertEqual([c for c, _ in report.summary], ["ws-a", "ws-b", "ws-c"])

    def test_tie_goes_to_first_seen(self):
        self.assertEqual(dominant_user([
            login("bob", "h", "2024-01-02 09:00"),
            login("alice", "h", "2024-01-03 09:00"),
            login("alice", "h", "2024-01-04 09:00"),
            login("bob", "h", "2024-01-05 09:00"),
        ]), "bob")

    def test_self_referential_takeover(self):
        """A user dominating their own month is not flagged that month."""
        batch = [
            login("alice", "host1", "2024-01-02 09:00"),
            login("mallory", "host1", "2024-02-02 02:00"),
            login("mallory", "host1", "2024-02-03 02:00"),
        ]
        report = self.tracker.detect(batch)
        self.assertEqual(report.anomalies, [])

    def test_separate_ground_truth(self):
        """Owners from a baseline batch; computer-months it lacks are not flagged."""
        baseline = [
            login("alice", "host1", "2024-02-01 09:00"),
            login("alice", "host1", "2024-02-02 09:00"),
        ]
        audited = [
            login("mallory", "host1", "2024-02-10 02:00"),
            login("mallory", "host1", "2024-02-11 02:00"),
            login("mallory", "host2", "2024-02-11 03:00"),
            login("mallory", "host1", "2024-03-01 02:00"),
        ]
        report = self.tracker.detect(audited, ground_truth=baseline)

        self.assertEqual(len(report.anomalies), 2)
        self.assertTrue(all(a.features.computer == "host1" for a in report.anomalies))
        self.assertTrue(all(a.features.month == "2024-02" for a in report.anomalies))

    def test_report_sections(self):
        self.tracker.detect(self.batch)
        self.assertEqual(self.sink.of_kind(EventKind.TITLE), [
            "Chronological System Ownership Log",
            "Final Ownership Summary",
            "Ownership Anomaly Detection",
        ])
        self.assertIn("Month: January 2024", self.sink.of_kind(EventKind.INFO))
        self.assertIn("host1 : bob", self.sink.of_kind(EventKind.INFO))


if __name__ == '__main__':
    unittest.main()
