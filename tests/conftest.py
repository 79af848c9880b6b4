from __future__ import annotations

from collections import deque
from typing import Iterable

import pytest

from statusboard.app.cache import HealthCache
from statusboard.app.checker import Checker
from statusboard.app.config import Settings
from statusboard.app.probe import ProbeAttempt


class ScriptedProber:
    """
    http: dict[url] -> iterable of ProbeAttempt returned one per probe_once call
    tcp:  dict[url] -> ProbeAttempt
    Unscripted calls fail, like a timeout. Every call is recorded.
    """

    def __init__(self, http: dict[str, Iterable[ProbeAttempt]] | None = None,
                 tcp: dict[str, ProbeAttempt] | None = None) -> None:
        self.http = {k: deque(v) for k, v in (http or {}).items()}
        self.tcp = dict(tcp or {})
        self.http_calls: list[tuple[str, int]] = []
        self.tcp_calls: list[tuple[str, int]] = []

    async def probe_once(self, url: str, timeout_ms: int) -> ProbeAttempt:
        self.http_calls.append((url, timeout_ms))
        dq = self.http.get(url)
        if dq:
            return dq.popleft()
        return ProbeAttempt(False, timeout_ms)

    async def tcp_probe(self, url: str, timeout_ms: int) -> ProbeAttempt:
        self.tcp_calls.append((url, timeout_ms))
        return self.tcp.get(url, ProbeAttempt(False, timeout_ms))

    @property
    def total_calls(self) -> int:
        return len(self.http_calls) + len(self.tcp_calls)


def ok(*latencies: int) -> list[ProbeAttempt]:
    return [ProbeAttempt(True, ms) for ms in latencies]


def fail(n: int = 1, ms: int = 5000) -> list[ProbeAttempt]:
    return [ProbeAttempt(False, ms) for _ in range(n)]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def settings() -> Settings:
    return Settings(HTTP_TIMEOUT_MS=5000, TCP_TIMEOUT_MS=3000, CACHE_TTL_S=60,
                    SLOW_THRESHOLD_MS=1500, PROBE_ATTEMPTS=3, MAX_CONCURRENCY=1)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_checker(settings: Settings, clock: FakeClock):
    def _make(prober: ScriptedProber, cfg: Settings | None = None) -> Checker:
        cfg = cfg or settings
        return Checker(cfg, HealthCache(cfg.CACHE_TTL_S, clock=clock), prober)

    return _make
