import json

import redis

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("redis_wrapper")

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

REDIS_URL = configs.REDIS_URL


class RedisJSONWrapper:
    def __init__(self, redis_uri=REDIS_URL, database=None, client=None):
        if client is not None:
            self.redis_client = client
            self.connected = True
            return
        if database is not None:
            redis_uri = f"{redis_uri}/{database}"
        try:
            self.redis_client = redis.from_url(redis_uri)
            self.redis_client.ping()
            self.connected = True
        except redis.exceptions.RedisError as e:
            logger.error(f"redis_connect_failed | uri={redis_uri} error={e}")
            self.redis_client = None
            self.connected = False

    def set_with_ttl(self, key, data, ttl_seconds: int):
        """Set a key with a TTL (in seconds). Stores data as JSON string."""
        value = json.dumps(data)
        if isinstance(ttl_seconds, int) and ttl_seconds > 0:
            # SET ... EX attaches the expiry atomically with the value
            self.redis_client.set(key, value, ex=ttl_seconds)
        else:
            self.redis_client.set(key, value)

    def get_and_delete(self, key):
        """Atomically read and remove a key (GETDEL)."""
        data = self.redis_client.getdel(key)
        if data:
            return json.loads(data)
        return None

    def delete_if_equals(self, key, data) -> bool:
        """Delete key only while it still holds *data*; WATCH guards the compare."""
        expected = json.dumps(data)
        with self.redis_client.pipeline() as pipe:
            try:
                pipe.watch(key)
                current = pipe.get(key)
                if current is None or current.decode("utf-8") != expected:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(key)
                pipe.execute()
                return True
            except redis.exceptions.WatchError:
                # replaced concurrently; the newer value stays
                return False
