"""
Tests for ReferenceCache.

An injected fake clock drives expiry, so nothing sleeps.
"""

import pytest

from survey_analytics.core.reference_cache import ReferenceCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ReferenceCache(ttl_seconds=60.0, clock=clock)


class TestReferenceCache:
    """Test TTL semantics and loader behaviour."""

    def test_get_missing_key_returns_none(self, cache):
        # Act & Assert
        assert cache.get("diseases") is None

    def test_put_then_get_within_ttl(self, cache, clock):
        # Arrange
        cache.put("diseases", [{"disease_name": "Malaria"}])
        clock.advance(59.9)

        # Act & Assert
        assert cache.get("diseases") == [{"disease_name": "Malaria"}]

    def test_entry_expires_at_ttl(self, cache, clock):
        # Arrange
        cache.put("diseases", ["malaria"])
        clock.advance(60.0)

        # Act & Assert
        assert cache.get("diseases") is None
        assert cache.keys() == []

    def test_get_or_load_miss_then_hit(self, cache):
        # Arrange
        calls = []

        def loader():
            calls.append(1)
            return {"totalDiseases": 2}

        # Act
        first = cache.get_or_load("summary", loader)
        second = cache.get_or_load("summary", loader)

        # Assert
        assert first == ({"totalDiseases": 2}, False)
        assert second == ({"totalDiseases": 2}, True)
        assert len(calls) == 1

    def test_get_or_load_reloads_after_expiry(self, cache, clock):
        # Arrange
        values = iter([["v1"], ["v2"]])
        cache.get_or_load("questions", lambda: next(values))
        clock.advance(61)

        # Act
        value, cached = cache.get_or_load("questions", lambda: next(values))

        # Assert
        assert value == ["v2"]
        assert cached is False

    def test_get_or_load_loader_error_propagates_and_caches_nothing(self, cache):
        # Arrange
        def failing_loader():
            raise RuntimeError("database down")

        # Act & Assert
        with pytest.raises(RuntimeError, match="database down"):
            cache.get_or_load("diseases", failing_loader)
        assert cache.keys() == []

    def test_zero_ttl_disables_caching(self, clock):
        # Arrange
        cache = ReferenceCache(ttl_seconds=0, clock=clock)
        cache.put("diseases", ["malaria"])

        # Act & Assert
        assert cache.get("diseases") is None

    def test_negative_ttl_rejected(self):
        # Act & Assert
        with pytest.raises(ValueError, match="ttl_seconds must be >= 0"):
            ReferenceCache(ttl_seconds=-1)

    def test_invalidate_single_key_and_all(self, cache):
        # Arrange
        cache.put("diseases", ["malaria"])
        cache.put("questions", ["q1"])

        # Act
        cache.invalidate("diseases")

        # Assert
        assert cache.keys() == ["questions"]

        # Act
        cache.invalidate()

        # Assert
        assert cache.keys() == []

    def test_instances_do_not_share_state(self, clock):
        # Arrange
        first = ReferenceCache(ttl_seconds=60, clock=clock)
        second = ReferenceCache(ttl_seconds=60, clock=clock)

        # Act
        first.put("diseases", ["malaria"])

        # Assert
        assert second.get("diseases") is None
        assert first.ttl_seconds == 60
