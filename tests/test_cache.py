import redis

from product_search.cache import KEY_PREFIX, InMemoryCache, RedisCache


class FakeRedis:
    def __init__(self, error=None):
        self.data = {}
        self.error = error

    def get(self, key):
        if self.error:
            raise self.error
        return self.data.get(key)

    def set(self, key, value, ex=None):
        if self.error:
            raise self.error
        self.data[key] = value.encode("utf-8")


def test_memory_cache_round_trip_and_expiry():
    cache = InMemoryCache()
    cache.set("live", {"data": [1]}, ttl=60)
    cache.set("dead", {"data": [2]}, ttl=0)

    assert cache.get("live") == {"data": [1]}
    assert cache.get("dead") is None
    assert cache.get("missing") is None
    assert len(cache) == 1


def test_memory_cache_evicts_least_recently_used():
    cache = InMemoryCache(max_entries=2)
    cache.set("a", {"v": 1}, ttl=60)
    cache.set("b", {"v": 2}, ttl=60)
    cache.get("a")
    cache.set("c", {"v": 3}, ttl=60)

    assert cache.get("b") is None
    assert cache.get("a") == {"v": 1}
    assert cache.get("c") == {"v": 3}


def test_redis_cache_round_trip():
    cache = RedisCache(FakeRedis())
    cache.set("k", {"data": [], "meta": {"page": 1}}, ttl=30)

    assert cache.get("k") == {"data": [], "meta": {"page": 1}}


def test_redis_failures_are_misses():
    cache = RedisCache(FakeRedis(error=redis.ConnectionError("down")))

    cache.set("k", {"data": []}, ttl=30)
    assert cache.get("k") is None


def test_undecodable_redis_entry_is_a_miss():
    client = FakeRedis()
    client.data["k"] = b"not json"

    assert RedisCache(client).get("k") is None


class ScanningRedis(FakeRedis):
    def scan_iter(self, match=None, count=None):
        if self.error:
            raise self.error
        prefix = match.rstrip("*")
        return [key for key in list(self.data) if key.startswith(prefix)]

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


def test_memory_cache_clear():
    cache = InMemoryCache()
    cache.set("a", {"v": 1}, ttl=60)
    cache.set("b", {"v": 2}, ttl=60)

    assert cache.clear() == 2
    assert cache.get("a") is None
    assert len(cache) == 0


def test_redis_clear_only_touches_search_pages():
    client = ScanningRedis()
    cache = RedisCache(client)
    cache.set(KEY_PREFIX + "one", {"data": []}, ttl=30)
    cache.set(KEY_PREFIX + "two", {"data": []}, ttl=30)
    client.data["session:42"] = b"{}"

    assert cache.clear() == 2
    assert list(client.data) == ["session:42"]


def test_redis_clear_failure_is_logged_not_raised():
    assert RedisCache(ScanningRedis(error=redis.ConnectionError("down"))).clear() == 0
