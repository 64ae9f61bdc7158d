"""
Unit tests for the Redis cache wrapper (no Redis server needed).
"""

from datetime import date
from decimal import Decimal

from flask import Flask

from dealquote.services.cache_service import CacheService, dumps, init_cache, loads


def make_app(**config):
    app = Flask(__name__)
    app.config.update(CACHE_ENABLED=False, CACHE_KEY_PREFIX='test', **config)
    return app


class TestCodec:

    def test_decimals_survive(self):
        value = {'amount': Decimal('5700.00'), 'items': [Decimal('0.10')]}
        assert loads(dumps(value)) == value
        assert str(loads(dumps(Decimal('5700.00')))) == '5700.00'

    def test_dates_become_iso_strings(self):
        assert loads(dumps({'due': date(2024, 3, 8)})) == {'due': '2024-03-08'}


class TestDisabledCache:

    def test_registered_on_app(self):
        app = make_app()
        cache = init_cache(app)
        assert app.extensions['cache'] is cache
        assert cache.enabled is False

    def test_operations_are_misses(self):
        cache = CacheService(make_app())

        assert cache.get('price_quotes', 'deal:1') is None
        assert cache.set('price_quotes', 'deal:1', [1]) is False
        assert cache.delete('price_quotes', 'deal:1') is False

    def test_memoize_always_loads(self):
        cache = CacheService(make_app())
        calls = []

        def loader():
            calls.append(1)
            return ['quote']

        assert cache.memoize('price_quotes', 'deal:1', loader) == ['quote']
        assert cache.memoize('price_quotes', 'deal:1', loader) == ['quote']
        assert len(calls) == 2

    def test_key_layout(self):
        assert CacheService(make_app()).key('price_quotes', 'deal:7') == 'test:price_quotes:deal:7'
