"""
Cloud Relay — Rate Limiter Tests
==================================

What:  FixedWindowRateLimiter with an injected clock (no real waiting), and
       RateLimitMiddleware through the ASGI app.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from cloudrelay.dependencies import get_providers
from cloudrelay.main import create_app
from cloudrelay.middleware.rate_limit import RATE_LIMIT_MESSAGE, FixedWindowRateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestFixedWindowRateLimiter:

    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = FixedWindowRateLimiter(limit=3, window_seconds=900, clock=self.clock)

    def test_allows_up_to_limit(self):
        decisions = [self.limiter.hit("1.2.3.4") for _ in range(3)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

    def test_rejects_over_limit(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4")
        decision = self.limiter.hit("1.2.3.4")
        assert decision.allowed is False
        assert decision.remaining == 0

    def test_keys_are_independent(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4")
        assert self.limiter.hit("5.6.7.8").allowed is True

    def test_window_resets_after_window_seconds(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4")
        self.clock.advance(899)
        assert self.limiter.hit("1.2.3.4").allowed is False
        self.clock.advance(1)
        decision = self.limiter.hit("1.2.3.4")
        assert decision.allowed is True
        assert decision.remaining == 2

    def test_retry_after_counts_down_to_window_end(self):
        for _ in range(3):
            self.limiter.hit("1.2.3.4")
        self.clock.advance(600)
        assert self.limiter.hit("1.2.3.4").retry_after == 300

    def test_expired_windows_are_pruned(self):
        limiter = FixedWindowRateLimiter(limit=5, window_seconds=10, clock=self.clock, prune_every=2)
        limiter.hit("old")
        self.clock.advance(20)
        limiter.hit("new")
        assert "old" not in limiter._windows

    @pytest.mark.parametrize("limit,window", [(0, 900), (10, 0)])
    def test_invalid_configuration(self, limit, window):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(limit=limit, window_seconds=window)


class TestRateLimitMiddleware:

    def _client(self, fake_providers, limit=2):
        app = create_app(
            rate_limiter=FixedWindowRateLimiter(limit=limit, window_seconds=900, clock=FakeClock())
        )
        app.dependency_overrides[get_providers] = lambda: fake_providers
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    @pytest.mark.asyncio
    async def test_rejects_with_429_before_handler(self, fake_providers):
        async with self._client(fake_providers) as client:
            for _ in range(2):
                response = await client.post("/ask", json={"prompt": "hi"})
                assert response.status_code == 200

            response = await client.post("/ask", json={"prompt": "hi"})

        assert response.status_code == 429
        assert response.json() == {"error": RATE_LIMIT_MESSAGE}
        assert response.headers["Retry-After"] == "900"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert fake_providers.chat.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_allowed_responses_carry_headers(self, fake_providers):
        async with self._client(fake_providers) as client:
            response = await client.post("/ask", json={"prompt": "hi"})
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, fake_providers):
        async with self._client(fake_providers, limit=1) as client:
            for _ in range(3):
                response = await client.get("/health")
                assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rejection_is_readable_cross_origin(self, fake_providers):
        headers = {"Origin": "https://frontend.example"}
        async with self._client(fake_providers, limit=1) as client:
            await client.post("/ask", json={"prompt": "hi"}, headers=headers)
            response = await client.post("/ask", json={"prompt": "hi"}, headers=headers)

        assert response.status_code == 429
        assert response.headers["access-control-allow-origin"] == "*"
        assert "Retry-After" in response.headers["access-control-expose-headers"]
