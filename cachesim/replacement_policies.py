"""Replacement policies that choose which line of a full set to evict."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from cachesim.memory_system import CacheStatus

if TYPE_CHECKING:
    from cachesim.memory_system import CacheSystem


class ReplacementPolicy(ABC):
    """Interface every replacement policy implements."""

    @abstractmethod
    def eviction_index(self, cache_system: CacheSystem, set_idx: int) -> int:
        """Return the index within the full set ``set_idx`` to evict."""

    @abstractmethod
    def cache_access(self, cache_system: CacheSystem, set_idx: int, tag: int) -> None:
        """Record that the line with ``tag`` in ``set_idx`` was accessed."""


class LRUPolicy(ReplacementPolicy):
    """Least-recently-used eviction.

    Each set keeps an age per way; the ages of a set are always a permutation
    of ``0 .. associativity - 1``, with 0 the least recently used way.
    """

    def __init__(self, sets: int, associativity: int) -> None:
        self.sets = sets
        self.associativity = associativity
        self.ages = [list(range(associativity)) for _ in range(sets)]

    def cache_access(self, cache_system: CacheSystem, set_idx: int, tag: int) -> None:
        lines = cache_system.set_lines(set_idx)
        accessed = next(
            (
                i
                for i, line in enumerate(lines[: self.associativity])
                if line.status is not CacheStatus.INVALID and line.tag == tag
            ),
            None,
        )
        if accessed is None:
            return
        ages = self.ages[set_idx]
        current = ages[accessed]
        for i, age in enumerate(ages):
            if age > current:
                ages[i] = age - 1
        ages[accessed] = self.associativity - 1

    def eviction_index(self, cache_system: CacheSystem, set_idx: int) -> int:
        try:
            return self.ages[set_idx].index(0)
        except ValueError:
            raise RuntimeError("No invalid cache line found") from None


class RandomPolicy(ReplacementPolicy):
    """Evicts a uniformly random way of the set."""

    def __init__(self, sets: int, associativity: int, rng: random.Random | None = None) -> None:
        self.sets = sets
        self.associativity = associativity
        self.rng = rng if rng is not None else random.Random()

    def cache_access(self, cache_system: CacheSystem, set_idx: int, tag: int) -> None:
        """Random replacement keeps no state."""

    def eviction_index(self, cache_system: CacheSystem, set_idx: int) -> int:
        return self.rng.randrange(cache_system.associativity)


class LRUPreferCleanPolicy(LRUPolicy):
    """LRU that evicts the oldest clean line, falling back to the oldest line."""

    def eviction_index(self, cache_system: CacheSystem, set_idx: int) -> int:
        ages = self.ages[set_idx]
        lines = cache_system.set_lines(set_idx)
        clean = [
            i for i, line in enumerate(lines[: cache_system.associativity])
            if line.status is CacheStatus.EXCLUSIVE
        ]
        candidates = clean if clean else range(cache_system.associativity)
        return min(candidates, key=lambda i: ages[i])


_POLICIES = {
    "LRU": LRUPolicy,
    "RAND": RandomPolicy,
    "LRU_PREFER_CLEAN": LRUPreferCleanPolicy,
}


def create_replacement_policy(name: str, sets: int, associativity: int) -> ReplacementPolicy:
    """Build the policy named ``LRU``, ``RAND`` or ``LRU_PREFER_CLEAN``."""
    try:
        policy_cls = _POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown replacement policy {name}") from None
    return policy_cls(sets, associativity)