from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .config import Settings, settings as default_settings
from .probe import ProbeAttempt


class HealthState(str, Enum):
    UP = "up"
    UNSTABLE = "unstable"
    DOWN = "down"


@dataclass(frozen=True)
class ProbeVerdict:
    state: HealthState
    attempts: int
    successes: int
    median_latency_ms: Optional[float] = None
    tcp_reachable: Optional[bool] = None
    tcp_latency_ms: Optional[float] = None
    url: Optional[str] = None
    fallback: bool = False

    def with_tcp(self, attempt: ProbeAttempt) -> "ProbeVerdict":
        """Fold a TCP fallback result in; a live socket lifts DOWN to UNSTABLE."""
        state = self.state
        if attempt.ok and state is HealthState.DOWN:
            state = HealthState.UNSTABLE
        return replace(
            self,
            state=state,
            tcp_reachable=attempt.ok,
            tcp_latency_ms=attempt.elapsed_ms if attempt.ok else None,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "url": self.url,
            "attempts": self.attempts,
            "successes": self.successes,
            "median_latency_ms": self.median_latency_ms,
            "tcp_reachable": self.tcp_reachable,
            "tcp_latency_ms": self.tcp_latency_ms,
            "fallback": self.fallback,
        }


def median(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def classify(successes: int, attempts: int, median_latency_ms: Optional[float],
             slow_threshold_ms: float) -> HealthState:
    if successes <= 0:
        return HealthState.DOWN
    if successes < attempts:
        return HealthState.UNSTABLE
    if median_latency_ms is not None and median_latency_ms < slow_threshold_ms:
        return HealthState.UP
    # reachable every time, but slow
    return HealthState.UNSTABLE


def summarize(url: str, results: List[ProbeAttempt], slow_threshold_ms: float) -> ProbeVerdict:
    latencies = [a.elapsed_ms for a in results if a.ok]
    med = median(latencies)
    return ProbeVerdict(
        state=classify(len(latencies), len(results), med, slow_threshold_ms),
        attempts=len(results),
        successes=len(latencies),
        median_latency_ms=med,
        url=url,
    )


async def evaluate(prober, url: str, cfg: Settings = default_settings) -> ProbeVerdict:
    """Probe ``url`` PROBE_ATTEMPTS times, one after another, and classify.

    Attempts are awaited in sequence so each one is an independent sample
    for the median; they must never overlap.
    """
    results = []
    for _ in range(max(1, cfg.PROBE_ATTEMPTS)):
        results.append(await prober.probe_once(url, cfg.HTTP_TIMEOUT_MS))
    return summarize(url, results, cfg.SLOW_THRESHOLD_MS)
