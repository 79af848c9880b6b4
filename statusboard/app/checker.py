import asyncio
import json
import logging
import time
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .cache import HealthCache, Status
from .config import Settings, settings as default_settings
from .normalize import normalize_url
from .probe import HttpProber
from .targets import Target
from .verdict import HealthState, ProbeVerdict, evaluate

logger = logging.getLogger(__name__)

StatusMap = Dict[str, Status]
DetailMap = Dict[str, ProbeVerdict]


class Checker:
    def __init__(self, cfg: Settings = default_settings, cache: Optional[HealthCache] = None, prober=None):
        self.settings = cfg
        self.cache = cache if cache is not None else HealthCache(cfg.CACHE_TTL_S)
        self.prober = prober if prober is not None else HttpProber(cfg.UA)

    async def _evaluate_url(self, raw_url: str) -> Optional[ProbeVerdict]:
        url = normalize_url(raw_url)
        if url is None:
            return None
        verdict = await evaluate(self.prober, url, self.settings)
        if verdict.successes == 0:
            tcp = await self.prober.tcp_probe(url, self.settings.TCP_TIMEOUT_MS)
            verdict = verdict.with_tcp(tcp)
        return verdict

    async def check_one(self, target: Target) -> Tuple[Status, Optional[ProbeVerdict]]:
        primary = target.probe_url
        if primary is None:
            logger.debug("%s: no probe URL, unknown", target.id)
            return Status.UNKNOWN, None

        cached = self.cache.get(target.id)
        if cached is not None:
            logger.debug("%s: cached %s", target.id, cached.status.value)
            return cached.status, cached.verdict

        started = time.monotonic()
        verdict = await self._evaluate_url(primary)
        fallback = target.fallback_url
        if fallback and (verdict is None or verdict.state is HealthState.DOWN):
            second = await self._evaluate_url(fallback)
            if second is not None:
                verdict = replace(second, fallback=True)
        if verdict is None:
            logger.debug("%s: unparsable URL %r, unknown", target.id, primary)
            return Status.UNKNOWN, None

        status = Status.from_state(verdict.state)
        self.cache.put(target.id, status, verdict)
        logger.info(json.dumps({
            "target": target.id,
            "url": verdict.url,
            "state": verdict.state.value,
            "status": status.value,
            "successes": verdict.successes,
            "attempts": verdict.attempts,
            "median_ms": verdict.median_latency_ms,
            "tcp": verdict.tcp_reachable,
            "fallback": verdict.fallback,
            "elapsed_ms": int((time.monotonic() - started) * 1000),
        }))
        return status, verdict

    async def check_all(self, targets: List[Target]) -> Tuple[StatusMap, DetailMap]:
        """Evaluate every target; each id appears exactly once in the status map.

        Probe failures never raise out of here: an unreachable target is a
        successful evaluation with an unfavourable status.
        """
        limit = max(1, self.settings.MAX_CONCURRENCY)
        if limit == 1:
            outcomes = [await self.check_one(t) for t in targets]
        else:
            sem = asyncio.Semaphore(limit)

            async def _bounded(t: Target):
                async with sem:
                    return await self.check_one(t)

            outcomes = await asyncio.gather(*(_bounded(t) for t in targets))

        statuses: StatusMap = {}
        details: DetailMap = {}
        for target, (status, verdict) in zip(targets, outcomes):
            statuses[target.id] = status
            if verdict is not None:
                details[target.id] = verdict
        return statuses, details
