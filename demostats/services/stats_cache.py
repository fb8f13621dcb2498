# demostats/services/stats_cache.py
from __future__ import annotations

import hashlib
import json
from typing import Any, Callable, Mapping, Optional

from flask import current_app

from demostats.extensions import cache


def stats_identity(user) -> str:
    """Whose payload a key belongs to: the Steam id, or the user row while unlinked."""
    return user.steam_id or f"user-{user.id}"


def _generation_key(identity: str) -> str:
    return f"stats-gen:{identity}"


def _generation(identity: str) -> int:
    return int(cache.get(_generation_key(identity)) or 0)


def filter_hash(filters: Mapping[str, Any]) -> str:
    payload = json.dumps(dict(filters), sort_keys=True, default=str)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def cache_key(namespace: str, tab: str, identity: str, filters: Mapping[str, Any]) -> str:
    """
    "<namespace>:<tab>:<identity>:g<generation>:<md5(filters)>"

    The generation segment is bumped by invalidate_user_stats(), which makes
    every key for that user miss without having to enumerate them.
    """
    return f"{namespace}:{tab}:{identity}:g{_generation(identity)}:{filter_hash(filters)}"


def remember(namespace: str, tab: str, identity: str, filters: Mapping[str, Any],
             builder: Callable[[], Any], timeout: Optional[int] = None) -> Any:
    key = cache_key(namespace, tab, identity, filters)
    hit = cache.get(key)
    if hit is not None:
        return hit

    value = builder()
    if timeout is None:
        timeout = int(current_app.config.get("STATS_CACHE_TTL", 900))
    cache.set(key, value, timeout=timeout)
    return value


def invalidate_user_stats(steam_id: str) -> int:
    """Drop every cached payload for `steam_id`. Returns the new generation."""
    gen = _generation(steam_id) + 1
    # 0 = no expiry; the counter must outlive every payload it guards
    cache.set(_generation_key(steam_id), gen, timeout=0)
    current_app.logger.info("stats cache invalidated steam_id=%s generation=%s", steam_id, gen)
    return gen
