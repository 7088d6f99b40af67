import json
from typing import Optional
from booking.core.redis import get_redis
from booking.core.config import settings

async def get_idempotent(key: str) -> Optional[dict]:
    if not key:
        return None
    redis = get_redis()
    if redis is None:
        return None
    v = await redis.get(f"idemp:{key}")
    return json.loads(v) if v else None

async def set_idempotent(key: str, value: dict) -> None:
    if not key:
        return
    redis = get_redis()
    if redis is None:
        return
    await redis.set(f"idemp:{key}", json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
