"""
Unit tests for the custom field definition cache.
"""

import threading

import pytest

from dealquote.services.definition_cache import DefinitionCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class CountingLoader:
    def __init__(self):
        self.calls = []

    def __call__(self, key):
        self.calls.append(key)
        return [f'{key}-definition-{len(self.calls)}']


class TestDefinitionCache:
    """TTL, invalidation and request coalescing."""

    def test_hit_within_ttl(self):
        loader, clock = CountingLoader(), FakeClock()
        cache = DefinitionCache(loader, ttl_seconds=60, clock=clock)

        first = cache.get('DEAL')
        clock.now = 59
        assert cache.get('DEAL') == first
        assert loader.calls == ['DEAL']

    def test_reload_after_expiry(self):
        loader, clock = CountingLoader(), FakeClock()
        cache = DefinitionCache(loader, ttl_seconds=60, clock=clock)

        cache.get('DEAL')
        clock.now = 60
        assert cache.get('DEAL') == ['DEAL-definition-2']

    def test_keys_are_independent(self):
        loader = CountingLoader()
        cache = DefinitionCache(loader, clock=FakeClock())

        cache.get('DEAL')
        cache.get('PERSON')
        cache.invalidate('DEAL')

        assert 'DEAL' not in cache
        assert 'PERSON' in cache

    def test_clear_drops_everything(self):
        loader = CountingLoader()
        cache = DefinitionCache(loader, clock=FakeClock())
        cache.get('DEAL')
        cache.get('LEAD')

        cache.clear()

        assert len(cache) == 0
        cache.get('DEAL')
        assert loader.calls == ['DEAL', 'LEAD', 'DEAL']

    def test_failed_load_is_not_cached(self):
        attempts = []

        def flaky(key):
            attempts.append(key)
            if len(attempts) == 1:
                raise RuntimeError('database down')
            return ['ok']

        cache = DefinitionCache(flaky, clock=FakeClock())
        with pytest.raises(RuntimeError):
            cache.get('DEAL')
        assert cache.get('DEAL') == ['ok']

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            DefinitionCache(CountingLoader(), ttl_seconds=-1)

    def test_concurrent_gets_share_one_load(self):
        """Callers arriving while a load is running wait for it instead of loading again."""
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_loader(key):
            calls.append(key)
            started.set()
            release.wait(timeout=5)
            return ['shared']

        cache = DefinitionCache(slow_loader)
        results = []

        def worker():
            results.append(cache.get('DEAL'))

        first = threading.Thread(target=worker)
        first.start()
        assert started.wait(timeout=5)

        others = [threading.Thread(target=worker) for _ in range(4)]
        for t in others:
            t.start()
        release.set()
        for t in [first] + others:
            t.join(timeout=5)

        assert calls == ['DEAL']
        assert results == [['shared']] * 5

    def test_waiters_receive_loader_error(self):
        started = threading.Event()
        release = threading.Event()

        def failing_loader(key):
            started.set()
            release.wait(timeout=5)
            raise RuntimeError('boom')

        cache = DefinitionCache(failing_loader)
        errors = []

        def worker():
            try:
                cache.get('DEAL')
            except RuntimeError as e:
                errors.append(str(e))

        first = threading.Thread(target=worker)
        first.start()
        assert started.wait(timeout=5)
        second = threading.Thread(target=worker)
        second.start()
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert errors == ['boom', 'boom']

    def test_failed_stale_load_leaves_newer_load_in_flight(self):
        """A load that fails after an invalidate must not drop the load started since."""
        first_started, release_first = threading.Event(), threading.Event()
        second_started, release_second = threading.Event(), threading.Event()
        calls = []

        def loader(key):
            calls.append(key)
            if len(calls) == 1:
                first_started.set()
                release_first.wait(timeout=5)
                raise RuntimeError('stale')
            second_started.set()
            release_second.wait(timeout=5)
            return ['fresh']

        cache = DefinitionCache(loader)
        errors, results = [], []

        def stale_worker():
            try:
                cache.get('DEAL')
            except RuntimeError as e:
                errors.append(str(e))

        def worker():
            results.append(cache.get('DEAL'))

        stale = threading.Thread(target=stale_worker)
        stale.start()
        assert first_started.wait(timeout=5)
        cache.invalidate('DEAL')

        fresh = threading.Thread(target=worker)
        fresh.start()
        assert second_started.wait(timeout=5)
        release_first.set()
        stale.join(timeout=5)

        waiter = threading.Thread(target=worker)
        waiter.start()
        release_second.set()
        fresh.join(timeout=5)
        waiter.join(timeout=5)

        assert errors == ['stale']
        assert calls == ['DEAL', 'DEAL']
        assert results == [['fresh'], ['fresh']]
