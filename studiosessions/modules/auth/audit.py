"""Authentication audit trail kept in a capped Redis list."""

import json
from datetime import UTC, datetime
from typing import Any, Dict

AUDIT_LIMIT = 10000


async def record_event(redis_client, list_key: str, event_type: str, data: Dict[str, Any]) -> None:
    """
    Push one event onto list_key, keeping only the newest AUDIT_LIMIT entries.

    Does nothing when no Redis client is configured.
    """
    if not redis_client:
        return

    event = {
        "type": event_type,
        "data": data,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    await redis_client.lpush(list_key, json.dumps(event))
    await redis_client.ltrim(list_key, 0, AUDIT_LIMIT - 1)
