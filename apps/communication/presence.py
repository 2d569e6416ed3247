"""
Online presence kept in the cache as a per-user connection counter.
A user is online while at least one WebSocket connection is open.
"""

import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


def presence_key(user_id):
    return f"chat:presence:{user_id}"


def _ttl():
    return getattr(settings, 'CHAT_PRESENCE_TTL_SECONDS', 3600)


def mark_online(user_id):
    """Count one more open connection; returns the new count."""
    key = presence_key(user_id)
    if cache.add(key, 1, _ttl()):
        count = 1
    else:
        try:
            count = cache.incr(key)
        except ValueError:
            # Expired between add and incr.
            cache.set(key, 1, _ttl())
            count = 1
        cache.touch(key, _ttl())

    logger.debug("User %s online (%d connections)", user_id, count)
    return count


def mark_offline(user_id):
    """Count one connection less; returns the remaining count."""
    key = presence_key(user_id)
    try:
        count = cache.decr(key)
    except ValueError:
        count = 0

    if count <= 0:
        cache.delete(key)
        count = 0
    logger.debug("User %s closed a connection (%d left)", user_id, count)
    return count


def is_online(user_id):
    return (cache.get(presence_key(user_id)) or 0) > 0


def statuses(user_ids):
    """Map each user id (as given) to 'online' or 'offline'."""
    keys = {presence_key(user_id): user_id for user_id in user_ids}
    found = cache.get_many(list(keys))
    return {
        str(user_id): 'online' if (found.get(key) or 0) > 0 else 'offline'
        for key, user_id in keys.items()
    }
