from animation import AnimationClock
from store import SelectionStore


def test_paused_clock_does_not_advance():
    store = SelectionStore(selected_year=2000, selected_week=10)
    assert not AnimationClock(is_playing=False).tick(store, request_pending=False)
    assert store.selected_week == 10


def test_pending_request_holds_the_frame():
    store = SelectionStore(selected_year=2000, selected_week=10)
    clock = AnimationClock(is_playing=True)
    assert not clock.tick(store, request_pending=True)
    assert store.selected_week == 10
    assert clock.is_playing


def test_advances_one_week():
    store = SelectionStore(selected_year=2000, selected_week=10)
    assert AnimationClock(is_playing=True).tick(store, request_pending=False)
    assert (store.selected_year, store.selected_week) == (2000, 11)


def test_last_week_rolls_into_next_year():
    store = SelectionStore(selected_year=2000, selected_week=52)
    clock = AnimationClock(is_playing=True)
    clock.tick(store, request_pending=False)
    assert (store.selected_year, store.selected_week) == (2001, 1)
    assert clock.is_playing


def test_end_of_range_wraps_and_stops():
    store = SelectionStore(selected_year=2100, selected_week=52)
    clock = AnimationClock(is_playing=True)
    assert clock.tick(store, request_pending=False)
    assert (store.selected_year, store.selected_week) == (1990, 1)
    assert not clock.is_playing


def test_toggle():
    clock = AnimationClock()
    assert clock.toggle() is True
    assert clock.toggle() is False
