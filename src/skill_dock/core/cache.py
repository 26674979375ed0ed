"""TTL file cache for GitHub tree lookups."""

import hashlib
import json
import logging
import time

from skill_dock.config import settings

logger = logging.getLogger("skill-dock.cache")


def _cache_key(prefix: str, *parts: str) -> str:
    """Deterministic cache filename for a prefix and key parts."""
    digest = hashlib.sha256("|".join(parts).encode()).hexdigest()[:16]
    return f"{prefix}_{digest}.json"


def get_cached(prefix: str, *key_parts: str, ttl: int | None = None) -> dict | list | None:
    """Return the cached payload, or None on miss or expiry."""
    if ttl is None:
        ttl = settings.cache_tree_ttl

    cache_file = settings.cache_path / _cache_key(prefix, *key_parts)
    if not cache_file.exists():
        return None

    try:
        data = json.loads(cache_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Cache read error: %s", e)
        return None

    if time.time() - data.get("_stored_at", 0) > ttl:
        cache_file.unlink(missing_ok=True)
        logger.debug("Cache expired: %s", cache_file.name)
        return None

    logger.debug("Cache hit: %s", cache_file.name)
    return data.get("payload")


def set_cached(prefix: str, *key_parts: str, payload: dict | list) -> None:
    """Store a payload with the current timestamp. Write errors are logged only."""
    cache_dir = settings.cache_path
    cache_file = cache_dir / _cache_key(prefix, *key_parts)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        cache_file.write_text(
            json.dumps({"_stored_at": time.time(), "payload": payload}),
            encoding="utf-8",
        )
    except OSError as e:
        logger.warning("Cache write error: %s", e)


def purge_prefix(prefix: str) -> int:
    """Remove all cache entries with a given prefix. Returns count removed."""
    cache_dir = settings.cache_path
    if not cache_dir.exists():
        return 0

    removed = 0
    for f in cache_dir.glob(f"{prefix}_*.json"):
        f.unlink(missing_ok=True)
        removed += 1

    if removed:
        logger.info("Purged %d cache entries with prefix '%s'", removed, prefix)
    return removed


def cache_stats() -> dict:
    """Entry count and total size of the cache dir."""
    cache_dir = settings.cache_path
    if not cache_dir.exists():
        return {"entries": 0, "size_bytes": 0}

    files = list(cache_dir.glob("*.json"))
    return {
        "entries": len(files),
        "size_bytes": sum(f.stat().st_size for f in files),
    }
