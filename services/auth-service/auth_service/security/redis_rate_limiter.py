"""Redis-backed sliding window limiter shared by every auth-service replica."""

from __future__ import annotations

import logging
import time
from typing import Callable, Final

from redis import Redis
from redis.exceptions import RedisError, ResponseError

from .rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


def _is_missing_scripting(exc: ResponseError) -> bool:
    # e.g. "ERR unknown command 'EVALSHA', with args beginning with: ..."
    message = str(exc).lower()
    return "unknown command" in message and "eval" in message


class RedisSlidingWindowRateLimiter:
    """Distributed attempt limiter implemented with Redis sorted sets.

    Servers without Lua scripting are detected once and served with plain
    commands afterwards. While Redis is unreachable, attempts are counted in a
    process-local window so login throttling never silently turns off.
    """

    _LUA_SCRIPT: Final[str] = """
    local key = KEYS[1]
    local seq_key = key .. ':seq'
    local window_ms = tonumber(ARGV[1])
    local max_requests = tonumber(ARGV[2])
    local now_ms = tonumber(ARGV[3])

    redis.call('ZREMRANGEBYSCORE', key, 0, now_ms - window_ms)
    if redis.call('ZCARD', key) >= max_requests then
        return 0
    end
    local seq = redis.call('INCR', seq_key)
    redis.call('PEXPIRE', seq_key, window_ms)
    redis.call('ZADD', key, now_ms, tostring(now_ms) .. ':' .. tostring(seq))
    redis.call('PEXPIRE', key, window_ms)
    return 1
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "auth-rate",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Register the Lua script and build the local window used during outages."""
        self._client = client
        self._max_requests = max_requests
        self._window_ms = window_seconds * 1000
        self._key_prefix = key_prefix
        self._clock = clock
        self._script = client.register_script(self._LUA_SCRIPT)
        self._scripting = True
        self._local = SlidingWindowRateLimiter(max_requests, window_seconds, clock=clock)

    def allow(self, key: str) -> bool:
        """Return ``True`` when another attempt for ``key`` fits in the shared window."""
        now_ms = int(self._clock() * 1000)
        redis_key = f"{self._key_prefix}:{key}"
        try:
            return self._allow_shared(redis_key, now_ms)
        except RedisError as exc:
            logger.warning("redis rate limiter unavailable, counting locally: %s", type(exc).__name__)
            return self._local.allow(key)

    def _allow_shared(self, redis_key: str, now_ms: int) -> bool:
        if self._scripting:
            try:
                result = self._script(keys=[redis_key], args=[self._window_ms, self._max_requests, now_ms])
            except ResponseError as exc:
                if not _is_missing_scripting(exc):
                    raise
                logger.info("redis server lacks scripting, switching to plain commands")
                self._scripting = False
            else:
                return int(result) == 1
        return self._allow_without_script(redis_key, now_ms)

    def _allow_without_script(self, redis_key: str, now_ms: int) -> bool:
        """Same window check issued as individual commands."""
        self._client.zremrangebyscore(redis_key, 0, now_ms - self._window_ms)
        if self._client.zcard(redis_key) >= self._max_requests:
            return False
        seq_key = f"{redis_key}:seq"
        seq = self._client.incr(seq_key)
        self._client.pexpire(seq_key, self._window_ms)
        self._client.zadd(redis_key, {f"{now_ms}:{seq}": now_ms})
        self._client.pexpire(redis_key, self._window_ms)
        return True
