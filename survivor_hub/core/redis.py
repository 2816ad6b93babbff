import redis.asyncio as redis

from survivor_hub.config import settings


def create_redis_client() -> redis.Redis:  # type: ignore[type-arg]
    """Build a client for the application Redis (not the arq queue)."""
    return redis.from_url(
        str(settings.REDIS_URL),
        encoding="utf-8",
        decode_responses=True,
    )
