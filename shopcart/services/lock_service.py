import redis
from shopcart.utils.retry import redis_retry
from shopcart.utils.settings import REDIS_URL
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in lua, redis runs the script atomically
#so nobody can slip in between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    -checkout lock per cart
    -release only by the owner that took it
    -atomicity via lua
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(cart_id: int) -> str:
        return f"cart:{cart_id}:checkout-lock"

    @redis_retry()
    def acquire_checkout_lock(self, cart_id: int, owner: str, ttl: int) -> bool:
        key = self._key(cart_id)
        logger.info(f"Acquire lock {key} for {owner}")
        #SET cart:1:checkout-lock "7" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=owner,
                nx=True,  #only if the key does not exist yet
                ex=ttl,  #expires on its own if the worker dies mid checkout
            )
        )

    @redis_retry()
    def release_checkout_lock(self, cart_id: int, owner: str) -> bool:
        key = self._key(cart_id)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
