import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import settings

class RedisClient:
    """Session store for issued access tokens: a token is valid while its key exists."""

    def __init__(self, url: str = settings.REDIS_URL):
        self.redis = redis.from_url(url, encoding="utf-8", decode_responses=True)

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    async def set_session(self, token: str, data: dict, expire: int):
        await self.redis.set(self._key(token), json.dumps(data), ex=expire)

    async def get_session(self, token: str) -> Optional[dict]:
        raw = await self.redis.get(self._key(token))
        return json.loads(raw) if raw else None

    async def delete_session(self, token: str):
        await self.redis.delete(self._key(token))

    async def close(self):
        await self.redis.aclose()

redis_client = RedisClient()
