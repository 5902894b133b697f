"""Tests for derived workout statistics."""

from datetime import datetime, timedelta, timezone

from liftlog.services import (
    compute_stats,
    compute_streaks,
    personal_records,
    total_volume,
    weekly_workout_count,
)

NOW = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)


def days_ago(n, hour=18):
    return (NOW - timedelta(days=n)).replace(hour=hour)


class TestStreaks:
    """Tests for compute_streaks."""

    def test_empty_history(self):
        assert compute_streaks([]) == (0, 0)

    def test_gap_of_two_days_continues(self, make_log):
        logs = [make_log(days_ago(n)) for n in (0, 1, 3)]
        assert compute_streaks(logs) == (3, 3)

    def test_gap_of_three_days_breaks(self, make_log):
        logs = [make_log(days_ago(n)) for n in (0, 3, 4, 5, 6)]
        assert compute_streaks(logs) == (1, 4)

    def test_same_day_counts_once(self, make_log):
        logs = [
            make_log(days_ago(0, hour=7)),
            make_log(days_ago(0, hour=19)),
            make_log(days_ago(1)),
        ]
        assert compute_streaks(logs) == (2, 2)

    def test_unordered_input(self, make_log):
        logs = [make_log(days_ago(n)) for n in (10, 0, 11, 1)]
        assert compute_streaks(logs) == (2, 2)

    def test_incomplete_logs_ignored(self, make_log):
        logs = [make_log(days_ago(0), completed=False), make_log(days_ago(5))]
        assert compute_streaks(logs) == (1, 1)


class TestVolume:
    """Tests for total_volume."""

    def test_three_sets_of_ten(self, make_log):
        log = make_log(NOW, [("Bench Press", 10, 135)] * 3)
        assert total_volume([log]) == 4050

    def test_missing_actuals_count_as_zero(self, make_log):
        log = make_log(NOW, [("Plank", None, 0), ("Squat", 5, 200)])
        assert total_volume([log]) == 1000

    def test_empty(self):
        assert total_volume([]) == 0


class TestWeeklyCount:
    """Tests for weekly_workout_count."""

    def test_trailing_seven_days(self, make_log):
        logs = [make_log(days_ago(n)) for n in (0, 3, 6, 8, 30)]
        assert weekly_workout_count(logs, now=NOW) == 3


class TestPersonalRecords:
    """Tests for personal_records."""

    def test_best_set_per_exercise(self, make_log):
        logs = [
            make_log(days_ago(3), [("Squat", 5, 225), ("Bench Press", 8, 135)]),
            make_log(days_ago(1), [("Squat", 3, 275), ("Squat", 8, 185)]),
        ]
        records = {pr.exercise_name: pr for pr in personal_records(logs)}

        assert (records["Squat"].weight, records["Squat"].reps) == (185, 8)
        assert records["Squat"].date == days_ago(1)
        assert records["Bench Press"].volume == 1080

    def test_tie_keeps_first(self, make_log):
        logs = [
            make_log(days_ago(3), [("Deadlift", 5, 300)]),
            make_log(days_ago(1), [("Deadlift", 10, 150)]),
        ]
        (record,) = personal_records(logs)
        assert record.weight == 300
        assert record.date == days_ago(3)

    def test_bodyweight_sets_do_not_count(self, make_log):
        assert personal_records([make_log(NOW, [("Pull-ups", 10, 0)])]) == []


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty_history(self):
        stats = compute_stats([], now=NOW)
        assert stats.total_workouts == 0
        assert stats.total_volume == 0
        assert stats.personal_records == []

    def test_dashboard(self, make_log):
        logs = [
            make_log(days_ago(0), [("Squat", 5, 225)]),
            make_log(days_ago(2), [("Squat", 5, 215)]),
        ]
        data = compute_stats(logs, now=NOW).to_dict()

        assert data["totalWorkouts"] == 2
        assert data["totalVolume"] == 2200
        assert data["currentStreak"] == 2
        assert data["weeklyWorkouts"] == 2
        assert data["personalRecords"][0]["weight"] == 225
