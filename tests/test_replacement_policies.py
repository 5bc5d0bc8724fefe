import random

import pytest

from cachesim.memory_system import CacheStatus, CacheSystem
from cachesim.replacement_policies import (
    LRUPolicy,
    LRUPreferCleanPolicy,
    RandomPolicy,
    ReplacementPolicy,
    create_replacement_policy,
)

LINE = 16


def make_cache(policy, sets=1, assoc=2):
    return CacheSystem(
        line_size=LINE,
        num_sets=sets,
        associativity=assoc,
        replacement_policy=policy,
        prefetcher=None,
        out=None,
    )


def cached(cs, address):
    tag = address >> (cs.offset_bits + cs.index_bits)
    set_idx = (address & cs.set_index_mask) >> cs.offset_bits
    line = cs.find_cache_line(set_idx, tag)
    return line is not None and line.status is not CacheStatus.INVALID


def test_lru_evicts_least_recently_used():
    policy = LRUPolicy(1, 2)
    cs = make_cache(policy)
    cs.mem_access(0x00, "R")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x00, "R")
    cs.mem_access(0x20, "R")
    assert cs.find_cache_line(0, 0x1) is None
    assert cs.find_cache_line(0, 0x0).status is CacheStatus.EXCLUSIVE
    assert cs.find_cache_line(0, 0x2).status is CacheStatus.EXCLUSIVE
    assert cs.stats.hits == 1
    assert cs.stats.misses == 3


def test_lru_initial_ages_are_way_order():
    policy = LRUPolicy(3, 4)
    assert policy.ages == [[0, 1, 2, 3]] * 3


def test_lru_accessed_line_becomes_youngest():
    policy = LRUPolicy(1, 4)
    cs = make_cache(policy, assoc=4)
    cs.mem_access(0x00, "R")
    assert policy.ages[0][0] == policy.associativity - 1


def test_lru_ages_stay_a_permutation():
    sets, assoc = 4, 4
    policy = LRUPolicy(sets, assoc)
    cs = make_cache(policy, sets=sets, assoc=assoc)
    rng = random.Random(7)
    for _ in range(500):
        cs.mem_access(rng.randrange(0, 4096) & ~0xF, rng.choice("RW"))
        for ages in policy.ages:
            assert sorted(ages) == list(range(assoc))
    assert cs.stats.hits + cs.stats.misses == cs.stats.accesses


def test_lru_eviction_without_zero_age_raises():
    policy = LRUPolicy(1, 2)
    cs = make_cache(policy)
    policy.ages[0] = [1, 1]
    with pytest.raises(RuntimeError):
        policy.eviction_index(cs, 0)


def test_lru_evicts_dirty_oldest_line():
    policy = LRUPolicy(1, 2)
    cs = make_cache(policy)
    cs.mem_access(0x00, "W")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x20, "R")
    assert not cached(cs, 0x00)
    assert cs.stats.dirty_evictions == 1


def test_prefer_clean_skips_older_dirty_line():
    policy = LRUPreferCleanPolicy(1, 2)
    cs = make_cache(policy)
    cs.mem_access(0x00, "W")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x20, "R")
    assert cached(cs, 0x00)
    assert not cached(cs, 0x10)
    assert cs.stats.dirty_evictions == 0


def test_prefer_clean_falls_back_to_oldest_when_all_dirty():
    policy = LRUPreferCleanPolicy(1, 2)
    cs = make_cache(policy)
    cs.mem_access(0x00, "W")
    cs.mem_access(0x10, "W")
    cs.mem_access(0x20, "R")
    assert not cached(cs, 0x00)
    assert cached(cs, 0x10)
    assert cs.stats.dirty_evictions == 1


def test_prefer_clean_picks_oldest_among_clean():
    policy = LRUPreferCleanPolicy(1, 4)
    cs = make_cache(policy, assoc=4)
    cs.mem_access(0x00, "W")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x20, "R")
    cs.mem_access(0x30, "W")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x40, "R")
    assert cs.find_cache_line(0, 0x2) is None
    assert cs.find_cache_line(0, 0x0).status is CacheStatus.MODIFIED
    assert cs.find_cache_line(0, 0x1).status is CacheStatus.EXCLUSIVE
    assert cs.find_cache_line(0, 0x3).status is CacheStatus.MODIFIED
    assert cs.find_cache_line(0, 0x4).status is CacheStatus.EXCLUSIVE
    assert cs.stats.hits == 1
    assert cs.stats.misses == 5
    assert cs.stats.dirty_evictions == 0


class _LastWay:
    def randrange(self, n):
        return n - 1


def test_random_uses_given_rng():
    policy = RandomPolicy(1, 2, _LastWay())
    cs = make_cache(policy)
    cs.mem_access(0x00, "R")
    cs.mem_access(0x10, "R")
    cs.mem_access(0x20, "R")
    assert cs.find_cache_line(0, 0x1) is None
    assert cs.find_cache_line(0, 0x0).status is CacheStatus.EXCLUSIVE
    assert cs.find_cache_line(0, 0x2).status is CacheStatus.EXCLUSIVE
    assert policy.eviction_index(cs, 0) == 1


def test_random_index_within_set():
    policy = RandomPolicy(1, 4, random.Random(3))
    cs = make_cache(policy, assoc=4)
    picks = {policy.eviction_index(cs, 0) for _ in range(200)}
    assert picks <= set(range(4))
    assert len(picks) > 1


def test_random_same_seed_same_outcome():
    addresses = range(0, 0x400, 0x10)

    def run(seed):
        cs = make_cache(RandomPolicy(1, 2, random.Random(seed)))
        for addr in addresses:
            cs.mem_access(addr, "R")
        present = [cs.find_cache_line(0, addr >> 4) is not None for addr in addresses]
        return present, cs.stats.misses

    first_present, first_misses = run(11)
    second_present, second_misses = run(11)
    assert first_present == second_present
    assert sum(first_present) == 2
    assert first_misses == second_misses == len(addresses)


@pytest.mark.parametrize(
    "name, cls",
    [("LRU", LRUPolicy), ("RAND", RandomPolicy), ("LRU_PREFER_CLEAN", LRUPreferCleanPolicy)],
)
def test_create_replacement_policy(name, cls):
    policy = create_replacement_policy(name, 2, 4)
    assert type(policy) is cls
    assert isinstance(policy, ReplacementPolicy)
    assert policy.associativity == 4


def test_create_unknown_policy_raises():
    with pytest.raises(ValueError, match="Unknown replacement policy FIFO"):
        create_replacement_policy("FIFO", 1, 1)


def test_base_policy_is_abstract():
    with pytest.raises(TypeError):
        ReplacementPolicy()