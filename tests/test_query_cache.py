import threading

import pytest

from query_cache import QueryCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def counting(value):
    calls = []

    def fetch():
        calls.append(1)
        return value

    return fetch, calls


def test_fresh_entry_is_served_from_cache():
    cache = QueryCache(clock=FakeClock())
    fetch, calls = counting({'AT': 1.0})

    assert cache.fetch(('snapshot', 1), fetch, stale_time=60) == {'AT': 1.0}
    assert cache.fetch(('snapshot', 1), fetch, stale_time=60) == {'AT': 1.0}
    assert len(calls) == 1


def test_stale_entry_is_refetched():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    fetch, calls = counting('data')

    cache.fetch(('timeseries', 'AT130'), fetch, stale_time=300)
    clock.now = 301
    cache.fetch(('timeseries', 'AT130'), fetch, stale_time=300)
    assert len(calls) == 2


def test_no_stale_time_keeps_entry_forever():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    fetch, calls = counting('range')

    cache.fetch(('metric-range', 'pm10'), fetch)
    clock.now = 10 ** 9
    cache.fetch(('metric-range', 'pm10'), fetch)
    assert len(calls) == 1


def test_failed_fetch_is_not_cached():
    cache = QueryCache(clock=FakeClock())

    def fail():
        raise RuntimeError('backend down')

    with pytest.raises(RuntimeError):
        cache.fetch(('cities',), fail)

    assert cache.peek(('cities',)) is None
    assert not cache.is_fetching()
    assert cache.fetch(('cities',), lambda: ['AT001C']) == ['AT001C']


def test_previous_data_is_kept_while_next_key_loads():
    cache = QueryCache(clock=FakeClock())
    cache.fetch(('metric-snapshot', 1), lambda: {'AT': 1.0}, keep_previous=True)

    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(5)
        return {'AT': 2.0}

    results = []
    worker = threading.Thread(
        target=lambda: results.append(cache.fetch(('metric-snapshot', 2), slow, keep_previous=True))
    )
    worker.start()
    assert started.wait(5)

    assert cache.is_fetching('metric-snapshot')
    assert cache.fetch(('metric-snapshot', 2), slow, keep_previous=True) == {'AT': 1.0}

    release.set()
    worker.join(5)
    assert results == [{'AT': 2.0}]
    assert not cache.is_fetching('metric-snapshot')


def test_concurrent_callers_share_one_request():
    cache = QueryCache(clock=FakeClock())
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow():
        calls.append(1)
        started.set()
        release.wait(5)
        return 'curve'

    results = []
    owner = threading.Thread(target=lambda: results.append(cache.fetch(('bspline', 'AT001C'), slow)))
    owner.start()
    assert started.wait(5)

    waiter = threading.Thread(target=lambda: results.append(cache.fetch(('bspline', 'AT001C'), slow)))
    waiter.start()
    release.set()
    owner.join(5)
    waiter.join(5)

    assert results == ['curve', 'curve']
    assert len(calls) == 1


def test_invalidate_and_clear():
    cache = QueryCache(clock=FakeClock())
    cache.fetch(('regions', None), lambda: 'geo')
    cache.fetch(('cities',), lambda: 'cities')

    cache.invalidate(('regions', None))
    assert cache.peek(('regions', None)) is None
    assert cache.peek(('cities',)) == 'cities'

    cache.clear()
    assert cache.peek(('cities',)) is None
