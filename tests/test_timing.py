from datetime import datetime, time, timezone

import pytest

from ritual.notifications.timing import DEFAULT_TIME, circular_mean, next_fire_time, optimal_time
from ritual.schemas.notifications import EngagementHistory


def history(times=(), average_open_time=None) -> EngagementHistory:
    return EngagementHistory(user_id="u1", preferred_interaction_times=list(times), average_open_time=average_open_time)


def test_mean_of_morning_interactions():
    assert optimal_time(history(["07:30", "07:15", "07:45"])) == time(7, 30)


def test_empty_history_defaults_to_six():
    assert optimal_time(history()) == time(6, 0)
    assert optimal_time(None) == DEFAULT_TIME


def test_mean_wraps_around_midnight():
    assert optimal_time(history([time(23, 50), time(0, 10)])) == time(0, 0)


def test_accepts_datetimes_times_and_iso_strings():
    instants = [
        datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc),
        time(8, 20),
        "2026-03-03T08:10:00Z",
    ]
    assert optimal_time(history(instants)) == time(8, 10)


def test_aware_instants_are_read_in_the_users_timezone():
    instants = ["2026-03-01T13:00:00+00:00", "2026-03-02T13:00:00+00:00"]
    assert optimal_time(history(instants), "America/New_York") == time(8, 0)


def test_malformed_entries_are_skipped():
    assert optimal_time(history(["garbage", None, 42, "", "07:00"])) == time(7, 0)


def test_all_malformed_falls_back_to_average_open_time():
    assert optimal_time(history(["nope"], average_open_time="06:45")) == time(6, 45)
    assert optimal_time(history(average_open_time=time(9, 5, 30))) == time(9, 5)


def test_unknown_timezone_does_not_break_optimal_time():
    assert optimal_time(history(["07:30", "07:15", "07:45"]), "Mars/Olympus_Mons") == time(7, 30)
    assert optimal_time(history(), "not a zone") == DEFAULT_TIME


def test_degenerate_mean_falls_back_to_default():
    assert circular_mean([time(6, 0), time(18, 0)]) is None
    assert optimal_time(history([time(6, 0), time(18, 0)])) == time(6, 0)


def test_rolls_to_tomorrow_when_time_has_passed():
    now = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)  # Tuesday
    fire = next_fire_time(time(6, 0), "UTC", True, now)
    assert fire == datetime(2026, 3, 11, 6, 0, tzinfo=timezone.utc)


def test_fires_later_today_when_time_is_ahead():
    now = datetime(2026, 3, 10, 5, 0, tzinfo=timezone.utc)
    fire = next_fire_time(time(6, 0), "UTC", True, now)
    assert fire == datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)


def test_exactly_now_rolls_forward():
    now = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)
    assert next_fire_time(time(6, 0), "UTC", True, now).day == 11


def test_weekends_skipped_when_disabled():
    friday_late = datetime(2026, 3, 13, 9, 0, tzinfo=timezone.utc)
    fire = next_fire_time(time(6, 0), "UTC", False, friday_late)
    assert fire.weekday() == 0
    assert fire.date().isoformat() == "2026-03-16"
    assert next_fire_time(time(6, 0), "UTC", True, friday_late).weekday() == 5


def test_local_wall_clock_in_users_timezone():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)  # 21:00 in Tokyo
    fire = next_fire_time(time(6, 30), "Asia/Tokyo", True, now)
    assert (fire.hour, fire.minute) == (6, 30)
    assert fire.astimezone(timezone.utc) == datetime(2026, 3, 10, 21, 30, tzinfo=timezone.utc)


def test_wall_clock_is_kept_across_dst_change():
    # clocks in New York go forward on 2026-03-08
    now = datetime(2026, 3, 7, 12, 0, tzinfo=timezone.utc)
    fire = next_fire_time(time(6, 0), "America/New_York", True, now)
    assert (fire.day, fire.hour) == (8, 6)
    assert fire.astimezone(timezone.utc).hour == 10


@pytest.mark.parametrize("bad", ["Mars/Olympus", ""])
def test_unknown_timezone_is_rejected(bad):
    with pytest.raises(Exception):
        next_fire_time(time(6, 0), bad, True)
