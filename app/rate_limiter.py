"""
Booking attempt rate limiting
Sliding window of attempt timestamps per identifier (usually the booking email).
Attempts live in process memory unless REDIS_URL is configured.
"""

import logging
import time
import uuid
from threading import Lock
from typing import Optional

import redis

from .config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None

KEY_PREFIX = "booking_attempts"


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create Redis client
    Returns None when REDIS_URL is not configured (memory-only mode)
    """
    global redis_client

    if redis_client is None and REDIS_URL:
        logger.info("🔄 Initializing Redis connection for booking rate limiting...")

        # Mask password in URL for logging
        if "@" in REDIS_URL:
            url_parts = REDIS_URL.split("@")
            protocol = url_parts[0].split(":")[0]
            masked_url = f"{protocol}:****@{url_parts[1]}"
        else:
            masked_url = "****"
        logger.info(f"📡 Using Redis URL connection: {masked_url}")

        try:
            client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )
            client.ping()
            redis_client = client
            logger.info("Redis connected successfully via URL")
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis via URL: {str(e)}")
            raise

    return redis_client


class MemoryAttemptStore:
    """Attempt timestamps in process memory; lost on restart"""

    def __init__(self):
        self._attempts: dict[str, list[float]] = {}
        self._lock = Lock()

    def attempts(self, identifier: str, window_start: float) -> list[float]:
        with self._lock:
            valid = [ts for ts in self._attempts.get(identifier, []) if ts > window_start]
            if valid:
                self._attempts[identifier] = valid
            else:
                self._attempts.pop(identifier, None)
            return list(valid)

    def add(self, identifier: str, timestamp: float, window_seconds: int) -> None:
        with self._lock:
            self._attempts.setdefault(identifier, []).append(timestamp)

    def clear(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier, None)


class RedisAttemptStore:
    """Attempt timestamps in a Redis sorted set per identifier"""

    def __init__(self, client: redis.Redis):
        self.client = client

    @staticmethod
    def _key(identifier: str) -> str:
        return f"{KEY_PREFIX}:{identifier}"

    def attempts(self, identifier: str, window_start: float) -> list[float]:
        key = self._key(identifier)
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(key, "-inf", window_start)
        pipe.zrange(key, 0, -1, withscores=True)
        _, members = pipe.execute()
        return [score for _, score in members]

    def add(self, identifier: str, timestamp: float, window_seconds: int) -> None:
        key = self._key(identifier)
        pipe = self.client.pipeline()
        pipe.zadd(key, {f"{timestamp}:{uuid.uuid4().hex[:8]}": timestamp})
        pipe.expire(key, window_seconds)
        pipe.execute()

    def clear(self, identifier: str) -> None:
        self.client.delete(self._key(identifier))


class BookingRateLimiter:
    """At most `limit` attempts per rolling `window_seconds` for one identifier"""

    def __init__(self, store=None, limit: int = BOOKING_RATE_LIMIT, window_seconds: int = BOOKING_RATE_WINDOW_SECONDS):
        self.store = store or MemoryAttemptStore()
        self.limit = limit
        self.window_seconds = window_seconds

    def check_rate_limit(self, identifier: Optional[str], now: Optional[float] = None) -> dict:
        """
        Check whether an identifier has used up its attempts.

        Returns:
            dict with 'limited', 'remaining_attempts', 'time_until_reset' (seconds)
            and 'reset_time' (epoch seconds)
        """
        if not identifier:
            # No identifier provided, can't rate limit
            return {"limited": False, "remaining_attempts": self.limit, "time_until_reset": 0, "reset_time": None}

        now = time.time() if now is None else now
        attempts = self.store.attempts(identifier, now - self.window_seconds)

        # The window frees up when the oldest attempt still inside it ages out
        reset_time = (min(attempts) if attempts else now) + self.window_seconds
        limited = len(attempts) >= self.limit

        if limited:
            logger.warning(f"🚫 Booking rate limit EXCEEDED for {identifier} - {len(attempts)}/{self.limit}")

        return {
            "limited": limited,
            "remaining_attempts": max(0, self.limit - len(attempts)),
            "time_until_reset": max(0, int(reset_time - now)),
            "reset_time": reset_time,
        }

    def record_attempt(self, identifier: Optional[str], now: Optional[float] = None) -> None:
        if not identifier:
            return
        self.store.add(identifier, time.time() if now is None else now, self.window_seconds)

    def clear_rate_limit(self, identifier: Optional[str]) -> None:
        """Admin override"""
        if identifier:
            self.store.clear(identifier)
            logger.info(f"🧹 Cleared booking rate limit for {identifier}")


def format_time_until_reset(seconds: int) -> str:
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"


_limiter: Optional[BookingRateLimiter] = None


def get_booking_rate_limiter() -> BookingRateLimiter:
    """Process-wide limiter, backed by Redis when available"""
    global _limiter

    if _limiter is None:
        store = None
        try:
            client = get_redis_client()
            if client is not None:
                store = RedisAttemptStore(client)
        except Exception as e:
            logger.warning(f"⚠️ Redis unavailable, booking attempts tracked in memory only: {e}")
        _limiter = BookingRateLimiter(store=store)

    return _limiter
