import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL, wiec tu jest get + porownanie + del wszystko naraz


class LockService:
    """
    -krotka blokada wariantu na czas sprawdz-i-zdejmij ze stanu (POS)
    -zwalnianie locka tylko przez wlasciciela
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(variant_id: str) -> str:
        return f"variant:{variant_id}:lock"

    @redis_retry()
    def acquire_variant_lock(self, variant_id: str, owner: str, ttl: int) -> bool:
        key = self._key(variant_id)
        logger.info(f"Acquire lock {key} for {owner}")
        #SET variant:v1:lock "owner" NX EX ttl
        return bool(
            self.redis.set(
                name=key,
                value=owner,
                nx=True,  #tylko jesli nie istnieje
                ex=ttl,  #wygasa sam, nawet jak proces padnie
            )
        )

    @redis_retry()
    def release_variant_lock(self, variant_id: str, owner: str) -> bool:
        key = self._key(variant_id)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
