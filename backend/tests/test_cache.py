from explainer.cache import TTLCache


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_cache(**kwargs):
    clock = FakeClock()
    return TTLCache(clock=clock, **kwargs), clock


def test_get_returns_value_before_ttl_and_none_after():
    cache, clock = make_cache()
    cache.set("problems:all", ["a"], ttl=60)

    clock.advance(59)
    assert cache.get("problems:all") == ["a"]

    clock.advance(2)
    assert cache.get("problems:all") is None
    # the stale entry was dropped on read
    assert len(cache) == 0


def test_default_ttl_applies_when_not_given():
    cache, clock = make_cache(default_ttl=10)
    cache.set("k", 1)
    clock.advance(9)
    assert cache.get("k") == 1
    clock.advance(1)
    assert cache.get("k") is None


def test_set_overwrites_value_and_expiry():
    cache, clock = make_cache()
    cache.set("k", "old", ttl=5)
    clock.advance(4)
    cache.set("k", "new", ttl=60)
    clock.advance(10)
    assert cache.get("k") == "new"


def test_never_set_key_is_absent():
    cache, _ = make_cache()
    assert cache.get("missing") is None


def test_delete_then_get_is_absent_and_delete_missing_is_noop():
    cache, _ = make_cache()
    cache.set("k", "v")
    cache.delete("k")
    assert cache.get("k") is None
    cache.delete("k")


def test_clear_empties_stats():
    cache, _ = make_cache()
    for i in range(5):
        cache.set(f"problem:{i}", i)
    cache.clear()
    assert cache.stats() == {"size": 0, "keys": []}


def test_stats_reports_only_live_keys():
    cache, clock = make_cache()
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=500)
    clock.advance(10)

    stats = cache.stats()
    assert stats["size"] == 1
    assert stats["keys"] == ["long"]


def test_periodic_sweep_drops_expired_unread_keys():
    cache, clock = make_cache(sweep_every=3)
    cache.set("a", 1, ttl=1)
    cache.set("b", 2, ttl=1)
    clock.advance(5)
    # third write triggers the sweep
    cache.set("c", 3, ttl=100)
    assert len(cache) == 1


def test_delete_prefix_removes_matching_keys_only():
    cache, _ = make_cache()
    cache.set("problems:user_1", [])
    cache.set("problems:user_2", [])
    cache.set("problems:all", [])

    removed = cache.delete_prefix("problems:user_")

    assert removed == 2
    assert cache.get("problems:all") == []
    assert cache.get("problems:user_1") is None


def test_cached_falsy_values_are_returned():
    cache, _ = make_cache()
    cache.set("empty", [])
    assert cache.get("empty") == []
