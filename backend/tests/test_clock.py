import pytest

from scorebook.services.games.clock import GameClock
from conftest import FakeTime


def test_counts_down_whole_seconds_and_carries_fractions():
    t = FakeTime()
    clock = GameClock(10, now=t)
    clock.start()
    t.advance(0.75)
    clock.tick()
    assert clock.seconds_remaining == 10
    t.advance(0.5)
    clock.tick()
    assert clock.seconds_remaining == 9
    # the quarter second left over above is not lost
    t.advance(0.75)
    clock.tick()
    assert clock.seconds_remaining == 8


def test_backgrounded_client_catches_up_on_next_tick():
    t = FakeTime()
    clock = GameClock(10, now=t)
    clock.start()
    t.advance(4.5)
    clock.tick()
    assert clock.seconds_remaining == 6
    t.advance(0.5)
    clock.tick()
    assert clock.seconds_remaining == 5


def test_period_end_fires_exactly_once_and_stops():
    t = FakeTime()
    calls = []
    clock = GameClock(10, now=t, on_period_end=lambda: calls.append(1))
    clock.start()
    t.advance(15)
    assert clock.tick() is True
    assert clock.seconds_remaining == 0
    assert not clock.is_running
    t.advance(5)
    assert clock.tick() is False
    assert calls == [1]
    # starting at zero is a no-op
    clock.start()
    assert not clock.is_running


def test_pause_keeps_remaining_time():
    t = FakeTime()
    clock = GameClock(10, now=t)
    clock.start()
    t.advance(3)
    clock.pause()
    assert clock.seconds_remaining == 7
    t.advance(100)
    clock.tick()
    assert clock.seconds_remaining == 7
    assert clock.seconds_until_expiry() is None


def test_set_time_rearms_period_end():
    t = FakeTime()
    calls = []
    clock = GameClock(5, now=t, on_period_end=lambda: calls.append(1))
    clock.start()
    t.advance(5)
    clock.tick()
    clock.set_time(5)
    clock.start()
    t.advance(5)
    assert clock.tick() is True
    assert len(calls) == 2


def test_reset_defaults_to_period_length():
    clock = GameClock(600, now=FakeTime())
    clock.set_time(12)
    clock.reset()
    assert clock.seconds_remaining == 600
    clock.reset(300)
    assert clock.seconds_remaining == 300


def test_restore_running_clock_counts_time_elapsed_while_away():
    t = FakeTime()
    clock = GameClock(600, now=t)
    clock.restore(300, running=True, anchor=t() - 30)
    clock.tick()
    assert clock.seconds_remaining == 270
    assert clock.is_running


def test_format_and_validation():
    assert GameClock.format(605) == '10:05'
    assert GameClock.format(0) == '0:00'
    with pytest.raises(ValueError):
        GameClock(-1)


def test_pausing_on_every_whistle_keeps_partial_seconds():
    t = FakeTime()
    clock = GameClock(600, now=t)
    for _ in range(12):
        clock.start()
        t.advance(0.75)
        clock.pause()
    # 12 x 0.75s of running time
    assert clock.seconds_remaining == 591
    assert clock.snapshot()['carry'] == 0.0


def test_set_time_drops_the_carried_fraction_and_restore_keeps_it():
    t = FakeTime()
    clock = GameClock(600, now=t)
    clock.start()
    t.advance(0.5)
    clock.pause()
    assert clock.snapshot()['carry'] == 0.5
    clock.set_time(300)
    clock.start()
    t.advance(0.5)
    clock.tick()
    assert clock.seconds_remaining == 300

    paused = GameClock(600, now=t)
    paused.restore(120, running=False, carry=0.5)
    paused.start()
    t.advance(0.5)
    paused.tick()
    assert paused.seconds_remaining == 119
