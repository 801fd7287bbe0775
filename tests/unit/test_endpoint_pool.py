"""Unit tests for endpoint rotation."""

import threading

import pytest

from app.services.blockchain import EndpointPool, ErrorClass
from app.utils.exceptions import ConfigurationError

URLS = ["https://a.example/key1", "https://b.example/key2", "https://c.example"]


def _names(endpoints):
    return [endpoint.name for endpoint in endpoints]


class TestEndpointPool:
    """Tests for EndpointPool."""

    def test_empty_pool_rejected(self):
        """A pool needs at least one endpoint."""
        with pytest.raises(ConfigurationError):
            EndpointPool([], client_factory=lambda url: object())

    def test_rotation_advances_per_call(self):
        """Consecutive calls start on consecutive endpoints and wrap."""
        pool = EndpointPool(URLS, client_factory=lambda url: object())

        assert _names(pool.select_order()) == [
            "https://a.example",
            "https://b.example",
            "https://c.example",
        ]
        assert _names(pool.select_order()) == [
            "https://b.example",
            "https://c.example",
            "https://a.example",
        ]
        assert _names(pool.select_order()) == [
            "https://c.example",
            "https://a.example",
            "https://b.example",
        ]
        assert _names(pool.select_order())[0] == "https://a.example"

    def test_rotation_visits_every_endpoint_once(self):
        """Each rotation is a permutation of the configured endpoints."""
        pool = EndpointPool(URLS, client_factory=lambda url: object())
        for _ in range(5):
            order = pool.select_order()
            assert sorted(endpoint.url for endpoint in order) == sorted(URLS)

    def test_pools_do_not_share_cursor(self):
        """Rotation state belongs to a single pool instance."""
        first = EndpointPool(URLS, client_factory=lambda url: object())
        second = EndpointPool(URLS, client_factory=lambda url: object())

        first.select_order()
        first.select_order()

        assert second.select_order()[0].url == URLS[0]

    def test_concurrent_rotation_starts_are_balanced(self):
        """Cursor advances exactly once per call under concurrent callers."""
        pool = EndpointPool(URLS, client_factory=lambda url: object())
        starts = []
        lock = threading.Lock()

        def worker():
            for _ in range(100):
                first = pool.select_order()[0].url
                with lock:
                    starts.append(first)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(starts) == 600
        assert all(starts.count(url) == 200 for url in URLS)

    def test_client_created_once_per_endpoint(self):
        """Clients are created lazily and cached."""
        created = []

        def factory(url):
            created.append(url)
            return object()

        pool = EndpointPool(URLS, client_factory=factory)
        endpoint = pool.endpoints[0]

        assert created == []
        assert pool.client_for(endpoint) is pool.client_for(endpoint)
        assert created == [URLS[0]]

    def test_classify_delegates_to_classifier(self):
        """Pool exposes transient/fatal classification."""
        pool = EndpointPool(URLS, client_factory=lambda url: object())
        assert pool.classify(TimeoutError()) is ErrorClass.TRANSIENT
        assert pool.classify(ValueError("invalid params")) is ErrorClass.FATAL

    def test_len(self):
        assert len(EndpointPool(URLS, client_factory=lambda url: object())) == 3
