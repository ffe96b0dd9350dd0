"""
Unit tests for the lifecycle classifier.

Tests classification of interventions relative to the query instant and the
ordering of the partitioned buckets.
"""

import unittest
from datetime import datetime, timedelta, timezone

from status_engine import Intervention, Severity, TemporalState, classify, partition, timing

START = datetime(2025, 2, 13, 8, 0)
END = datetime(2025, 2, 13, 8, 15)
TICK = timedelta(microseconds=1)


def make_intervention(id, start, end, severity=Severity.PARTIAL_OUTAGE, services=(1,)):
    return Intervention(
        id=id,
        title=f"Intervention {id}",
        start_date=start,
        end_date=end,
        severity=severity,
        affected_services=frozenset(services),
    )


class TestClassify(unittest.TestCase):
    """Test cases for classify()."""

    def setUp(self):
        self.intervention = make_intervention(1, START, END)

    def test_start_boundary_is_ongoing(self):
        self.assertIs(classify(self.intervention, START), TemporalState.ONGOING)

    def test_end_boundary_is_ongoing(self):
        self.assertIs(classify(self.intervention, END), TemporalState.ONGOING)

    def test_just_before_start_is_upcoming(self):
        self.assertIs(classify(self.intervention, START - TICK), TemporalState.UPCOMING)

    def test_just_after_end_is_past(self):
        self.assertIs(classify(self.intervention, END + TICK), TemporalState.PAST)

    def test_every_instant_maps_to_exactly_one_state(self):
        """Sweep a range of instants around the window."""
        now = START - timedelta(minutes=30)
        seen = set()
        while now <= END + timedelta(minutes=30):
            state = classify(self.intervention, now)
            self.assertIn(state, set(TemporalState))
            seen.add(state)
            now += timedelta(minutes=1)
        self.assertEqual(seen, set(TemporalState))


class TestTiming(unittest.TestCase):
    """Test cases for timing()."""

    def setUp(self):
        self.intervention = make_intervention(1, START, END)

    def test_ongoing_exposes_elapsed_and_remaining(self):
        result = timing(self.intervention, START + timedelta(minutes=5))

        self.assertIs(result.state, TemporalState.ONGOING)
        self.assertEqual(result.elapsed, timedelta(minutes=5))
        self.assertEqual(result.remaining, timedelta(minutes=10))
        self.assertIsNone(result.time_to_start)
        self.assertAlmostEqual(result.progress, 1 / 3)

    def test_ongoing_at_boundaries_is_non_negative(self):
        at_start = timing(self.intervention, START)
        at_end = timing(self.intervention, END)

        self.assertEqual(at_start.elapsed, timedelta(0))
        self.assertEqual(at_start.remaining, END - START)
        self.assertEqual(at_end.remaining, timedelta(0))
        self.assertEqual(at_end.progress, 1.0)

    def test_upcoming_exposes_time_to_start(self):
        result = timing(self.intervention, START - timedelta(hours=2))

        self.assertIs(result.state, TemporalState.UPCOMING)
        self.assertEqual(result.time_to_start, timedelta(hours=2))
        self.assertIsNone(result.elapsed)
        self.assertIsNone(result.progress)

    def test_past_has_no_durations(self):
        result = timing(self.intervention, END + timedelta(days=1))

        self.assertIs(result.state, TemporalState.PAST)
        self.assertIsNone(result.elapsed)
        self.assertIsNone(result.remaining)
        self.assertIsNone(result.time_to_start)

    def test_to_dict_uses_seconds(self):
        data = timing(self.intervention, START + timedelta(minutes=1)).to_dict()

        self.assertEqual(data['state'], 'ongoing')
        self.assertEqual(data['elapsed_seconds'], 60.0)
        self.assertEqual(data['remaining_seconds'], 840.0)
        self.assertIsNone(data['time_to_start_seconds'])


class TestPartition(unittest.TestCase):
    """Test cases for partition()."""

    def setUp(self):
        self.now = datetime(2025, 3, 1, 12, 0)
        hour = timedelta(hours=1)
        self.interventions = [
            make_intervention('up-late', self.now + 5 * hour, self.now + 6 * hour),
            make_intervention('past-old', self.now - 10 * hour, self.now - 9 * hour),
            make_intervention('on-long', self.now - hour, self.now + 4 * hour),
            make_intervention('up-soon', self.now + hour, self.now + 9 * hour),
            make_intervention('past-recent', self.now - 3 * hour, self.now - hour),
            make_intervention('on-short', self.now - 2 * hour, self.now + hour),
            make_intervention('past-mid', self.now - 8 * hour, self.now - 2 * hour),
        ]

    def test_buckets_are_disjoint_and_exhaustive(self):
        upcoming, ongoing, past = partition(self.interventions, self.now)

        ids = [i.id for i in upcoming + ongoing + past]
        self.assertEqual(len(ids), len(self.interventions))
        self.assertEqual(set(ids), {i.id for i in self.interventions})

    def test_upcoming_sorted_by_start_date(self):
        upcoming, _, _ = partition(self.interventions, self.now)
        self.assertEqual([i.id for i in upcoming], ['up-soon', 'up-late'])

    def test_ongoing_sorted_by_end_date(self):
        _, ongoing, _ = partition(self.interventions, self.now)
        self.assertEqual([i.id for i in ongoing], ['on-short', 'on-long'])

    def test_past_sorted_most_recent_first(self):
        _, _, past = partition(self.interventions, self.now)
        self.assertEqual([i.id for i in past], ['past-recent', 'past-mid', 'past-old'])

    def test_ties_keep_input_order(self):
        end = self.now - timedelta(hours=1)
        first = make_intervention('a', end - timedelta(hours=3), end)
        second = make_intervention('b', end - timedelta(hours=1), end)

        _, _, past = partition([first, second], self.now)

        self.assertEqual([i.id for i in past], ['a', 'b'])

    def test_empty_input(self):
        self.assertEqual(partition([], self.now), ([], [], []))

    def test_does_not_mutate_input(self):
        before = list(self.interventions)
        partition(self.interventions, self.now)
        self.assertEqual(self.interventions, before)


class TestAwareInstants(unittest.TestCase):
    """A timezone-aware instant behaves like the same instant in naive UTC."""

    def setUp(self):
        self.intervention = make_intervention(1, START, END)
        self.paris = timezone(timedelta(hours=1))

    def test_classify_converts_to_utc(self):
        # 09:05 in UTC+1 is 08:05 UTC, inside the window
        aware = datetime(2025, 2, 13, 9, 5, tzinfo=self.paris)
        self.assertIs(classify(self.intervention, aware), TemporalState.ONGOING)

    def test_boundaries_hold_for_aware_instants(self):
        self.assertIs(classify(self.intervention, START.replace(tzinfo=timezone.utc)), TemporalState.ONGOING)
        self.assertIs(classify(self.intervention, END.replace(tzinfo=timezone.utc) + TICK), TemporalState.PAST)

    def test_timing_matches_naive_utc(self):
        aware = datetime(2025, 2, 13, 9, 5, tzinfo=self.paris)
        self.assertEqual(timing(self.intervention, aware), timing(self.intervention, datetime(2025, 2, 13, 8, 5)))

    def test_partition_matches_naive_utc(self):
        hour = timedelta(hours=1)
        interventions = [
            make_intervention('past', START - 3 * hour, START - 2 * hour),
            self.intervention,
            make_intervention('up', END + hour, END + 2 * hour),
        ]
        naive = datetime(2025, 2, 13, 8, 5)
        aware = naive.replace(tzinfo=timezone.utc).astimezone(self.paris)

        self.assertEqual(partition(interventions, aware), partition(interventions, naive))


if __name__ == '__main__':
    unittest.main()
