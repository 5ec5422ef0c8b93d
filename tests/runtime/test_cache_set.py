import itertools
from tracecache.runtime.cache_set import CacheSet
from tracecache.runtime.policies import ReplacementPolicy


def test_empty_set_misses_and_fills_in_way_order():
    cache_set = CacheSet(ways=2, block_size=8, policy=ReplacementPolicy.LRU)
    hit, way = cache_set.lookup(0x5)
    assert not hit and way is None

    assert cache_set.find_victim(0x5) == 0
    cache_set.insert(0, 0x5)
    assert cache_set.find_victim(0x6) == 1


def test_insert_resets_line_state():
    cache_set = CacheSet(ways=1, block_size=16, policy=ReplacementPolicy.LRU, clock=lambda: 42.0)
    line = cache_set.lines[0]
    line.dirty = True
    line.access_count = 9

    cache_set.insert(0, 0x7)
    assert line.valid and line.tag == 0x7
    assert not line.dirty
    assert line.access_count == 1
    assert line.inserted_at == 42.0
    assert line.last_used_seq == 1
    assert len(line.payload) == 16


def test_hit_updates_recency_and_count():
    cache_set = CacheSet(ways=2, block_size=4, policy=ReplacementPolicy.LRU)
    cache_set.insert(0, 0x1)
    cache_set.insert(1, 0x2)

    hit, way = cache_set.lookup(0x1)
    assert hit and way == 0
    assert cache_set.lines[0].access_count == 2
    assert cache_set.lines[0].last_used_seq > cache_set.lines[1].last_used_seq


def test_sequence_is_shared_between_sets():
    sequence = itertools.count(1)
    a = CacheSet(ways=1, block_size=4, policy=ReplacementPolicy.LRU, sequence=sequence)
    b = CacheSet(ways=1, block_size=4, policy=ReplacementPolicy.LRU, sequence=sequence)
    a.insert(0, 0x1)
    b.insert(0, 0x1)
    a.lookup(0x1)
    assert [a.lines[0].last_used_seq, b.lines[0].last_used_seq] == [3, 2]


def test_full_set_delegates_to_policy():
    cache_set = CacheSet(ways=2, block_size=4, policy=ReplacementPolicy.MRU)
    for tag in (0x1, 0x2):
        cache_set.insert(cache_set.find_victim(tag), tag)
    cache_set.lookup(0x1)
    assert cache_set.find_victim(0x3) == 0


def test_fifo_queue_filled_by_cold_victims():
    cache_set = CacheSet(ways=3, block_size=4, policy=ReplacementPolicy.FIFO)
    for tag in (0x1, 0x2, 0x3):
        cache_set.insert(cache_set.find_victim(tag), tag)
    assert list(cache_set.replacement.fifo_queue) == [0, 1, 2]
    assert cache_set.find_victim(0x4) == 0


def test_optimal_trace_priming():
    cache_set = CacheSet(ways=2, block_size=4, policy=ReplacementPolicy.OPTIMAL)
    cache_set.set_optimal_trace([(0, 0x1), (1, 0x2), (2, 0x3), (3, 0x1)])
    for position, tag in ((0, 0x1), (1, 0x2)):
        cache_set.lookup(tag, position)
        cache_set.insert(cache_set.find_victim(tag), tag)

    hit, _ = cache_set.lookup(0x3, 2)
    assert not hit
    # 0x2 never comes back, 0x1 does at position 3
    assert cache_set.find_victim(0x3) == 1


def test_occupancy_never_exceeds_ways():
    cache_set = CacheSet(ways=4, block_size=4, policy=ReplacementPolicy.LRU)
    for tag in range(20):
        hit, _ = cache_set.lookup(tag % 7)
        if not hit:
            cache_set.insert(cache_set.find_victim(tag % 7), tag % 7)
        assert cache_set.occupancy() <= 4
        tags = cache_set.valid_tags()
        assert len(tags) == len(set(tags))


def test_fill_is_not_an_lfu_use():
    cache_set = CacheSet(ways=2, block_size=4, policy=ReplacementPolicy.LFU)
    cache_set.insert(0, 0x1)
    assert cache_set.replacement.frequency[0x1] == 0

    cache_set.lookup(0x1)
    assert cache_set.replacement.frequency[0x1] == 1


def test_fill_touches_plru_path():
    cache_set = CacheSet(ways=4, block_size=4, policy=ReplacementPolicy.PLRU)
    cache_set.insert(0, 0x1)
    assert cache_set.replacement.plru_bits == [True, True, False]
