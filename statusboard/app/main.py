import logging
import time
from typing import List, Optional

import yaml
from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse

from .cache import HealthCache
from .checker import Checker
from .config import settings
from .targets import DETAILS_KEY, Target, TargetSourceError, load_targets

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app_start_time = time.time()
cache = HealthCache(ttl_s=settings.CACHE_TTL_S)
checker = Checker(settings, cache)
_targets: Optional[List[Target]] = None


def current_targets() -> List[Target]:
    global _targets
    if _targets is None:
        _targets = load_targets(settings.TARGETS_PATH)
        logger.info(f"Loaded {len(_targets)} targets from {settings.TARGETS_PATH}")
    return _targets


app = FastAPI(title="StatusBoard target health")

@app.get("/health")
def health():
    return {
        "ok": True,
        "uptime_s": int(time.time() - app_start_time),
        "targets_count": len(_targets or []),
    }

@app.get("/api/targets")
def api_targets():
    try:
        targets = current_targets()
    except (OSError, TargetSourceError, yaml.YAMLError) as e:
        logger.error(f"Failed to load targets: {e}")
        return JSONResponse({"error": "failed_to_load_targets", "details": str(e)}, status_code=500)
    return [t.as_dict() for t in targets]

@app.get("/api/health")
async def api_health():
    """Status of every target, id -> online|offline|unstable|unknown."""
    try:
        targets = current_targets()
        statuses, details = await checker.check_all(targets)
    except (OSError, TargetSourceError, yaml.YAMLError) as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse({"error": "health_check_failed", "details": str(e)}, status_code=500)

    payload = {tid: status.value for tid, status in statuses.items()}
    if details:
        payload[DETAILS_KEY] = {tid: v.as_dict() for tid, v in details.items()}
    return JSONResponse(payload, headers={"Cache-Control": "public, max-age=30"})

@app.post("/reload")
def reload_targets(x_reload_token: str = Header(None)):
    """Re-read the target file (requires token). Cached verdicts are kept."""
    global _targets
    if x_reload_token != settings.RELOAD_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid reload token")
    try:
        _targets = load_targets(settings.TARGETS_PATH)
    except (OSError, TargetSourceError, yaml.YAMLError) as e:
        logger.error(f"Failed to reload targets: {e}")
        raise HTTPException(status_code=500, detail=f"Reload failed: {e}")
    return {"ok": True, "targets_count": len(_targets)}
