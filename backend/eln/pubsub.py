from __future__ import annotations

import json
import os
from contextlib import suppress
from datetime import date, datetime
from typing import Any, AsyncIterator

import redis.asyncio as redis

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
_redis = None


async def get_redis():
    global _redis
    if _redis is None:
        if os.getenv("TESTING") == "1":
            from fakeredis import aioredis
            _redis = aioredis.FakeRedis()
        else:
            _redis = redis.from_url(REDIS_URL)
    return _redis


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _serialize_event(event: dict[str, Any]) -> str:
    return json.dumps(event, default=_json_default)


async def publish_team_event(team_id: str, event: dict[str, Any]) -> None:
    # purpose: tell team members an entity changed so open pages can refresh
    r = await get_redis()
    await r.publish(f"team:{team_id}", _serialize_event(event))


async def publish_entity_event(team_id, entity_type: str, entity_id: int, event_type: str) -> None:
    if not team_id:
        return
    await publish_team_event(
        str(team_id),
        {"type": event_type, "entity_type": entity_type, "id": entity_id},
    )


async def iter_team_events(team_id: str) -> AsyncIterator[str]:
    r = await get_redis()
    channel = f"team:{team_id}"
    pubsub = r.pubsub()
    await pubsub.subscribe(channel)
    try:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            data = message.get("data")
            if isinstance(data, bytes):
                yield data.decode()
            else:
                yield str(data)
    finally:
        with suppress(Exception):
            await pubsub.unsubscribe(channel)
        with suppress(AttributeError):
            await pubsub.close()
