"""
Resource-scoped cache invalidation.

Server-side cache entries are registered under the name of the resource
they are derived from.  A write calls :func:`invalidate` with the
resources it touched: matching cache keys are dropped immediately and,
once the transaction commits, an ``invalidate`` event naming the same
resources is broadcast to every browser on the ``updates`` channel group
so each tab can drop exactly those query keys.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

UPDATES_GROUP = 'updates'

# resource name -> callables returning the cache keys derived from it
_key_providers: dict[str, list[Callable[[], Iterable[str]]]] = {}


def register_cache_keys(resource: str, provider: Callable[[], Iterable[str]]) -> None:
    providers = _key_providers.setdefault(resource, [])
    if provider not in providers:
        providers.append(provider)


def cache_keys_for(resources: Iterable[str]) -> list[str]:
    keys: list[str] = []
    for resource in resources:
        for provider in _key_providers.get(resource, []):
            keys.extend(k for k in provider() if k not in keys)
    return keys


def broadcast(resources: list[str]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    now = timezone.now()
    event = {
        'type': 'broadcast.invalidate',
        'resources': resources,
        'version': int(now.timestamp()),
        'ts': now.isoformat(),
    }
    async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)


def _after_commit(resources: list[str]) -> None:
    # a reader may have re-filled the cache with pre-commit data in the meantime
    cache.delete_many(cache_keys_for(resources))
    try:
        broadcast(resources)
    except Exception:
        logger.exception('failed to broadcast invalidation for %s', resources)


def invalidate(*resources: str) -> list[str]:
    """Drop caches derived from ``resources`` and notify connected clients."""
    names = sorted(set(resources))
    keys = cache_keys_for(names)
    if keys:
        cache.delete_many(keys)
    logger.debug('invalidated %s (keys=%s)', names, keys)
    transaction.on_commit(lambda: _after_commit(names))
    return keys
