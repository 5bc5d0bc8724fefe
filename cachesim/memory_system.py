"""Set-associative cache model with hit/miss statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, TextIO

ADDRESS_MASK = 0xFFFFFFFF


class CacheStatus(Enum):
    """State of a single cache line."""

    INVALID = 0
    EXCLUSIVE = 1
    MODIFIED = 2


@dataclass
class CacheLine:
    """One line of a cache set."""

    tag: int = 0
    status: CacheStatus = CacheStatus.INVALID

    @property
    def is_dirty(self) -> bool:
        return self.status is CacheStatus.MODIFIED


@dataclass
class CacheStats:
    """Counters collected while the cache is exercised."""

    accesses: int = 0
    hits: int = 0
    misses: int = 0
    prefetches: int = 0
    compulsory_misses: int = 0
    conflict_misses: int = 0
    dirty_evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        """Hits per access; NaN when nothing has been accessed."""
        if self.accesses == 0:
            return math.nan
        return self.hits / self.accesses


class EvictionError(Exception):
    """Raised when a replacement policy picks an index outside the set."""


class _ReplacementPolicy(Protocol):
    def eviction_index(self, cache_system: "CacheSystem", set_idx: int) -> int: ...

    def cache_access(self, cache_system: "CacheSystem", set_idx: int, tag: int) -> None: ...


class _Prefetcher(Protocol):
    def handle_mem_access(
        self, cache_system: "CacheSystem", address: int, is_miss: bool
    ) -> int: ...


@dataclass(eq=False)
class CacheSystem:
    """A 32-bit address cache with pluggable replacement and prefetching.

    When ``out`` is given, a trace of every access and the cache geometry
    are written to it.
    """

    line_size: int
    num_sets: int
    associativity: int
    replacement_policy: Any
    prefetcher: Any = None
    out: TextIO | None = None
    stats: CacheStats = field(default_factory=CacheStats, init=False)

    def __post_init__(self) -> None:
        if self.line_size <= 0 or self.num_sets <= 0 or self.associativity <= 0:
            raise ValueError("line size, set count and associativity must be positive")
        self.index_bits = int(math.log2(self.num_sets))
        self.offset_bits = int(math.log2(self.line_size))
        self.tag_bits = 32 - self.index_bits - self.offset_bits
        self.offset_mask = ADDRESS_MASK >> (32 - self.offset_bits)
        self.set_index_mask = ADDRESS_MASK >> self.tag_bits

        self._emit("\nCache System Geometry:")
        self._emit(f"Index bits: {self.index_bits}")
        self._emit(f"Offset bits: {self.offset_bits}")
        self._emit(f"Tag bits: {self.tag_bits}")
        self._emit(f"Offset mask: 0x{self.offset_mask:x}")
        self._emit(f"Set index mask: 0x{self.set_index_mask:x}")

        self._sets = [
            [CacheLine() for _ in range(self.associativity)] for _ in range(self.num_sets)
        ]
        self._accessed_lines: set[int] = set()

    def _emit(self, text: str) -> None:
        if self.out is not None:
            print(text, file=self.out)

    def set_lines(self, set_idx: int) -> list[CacheLine]:
        """Return the (live) lines of the given set."""
        return self._sets[set_idx]

    def add_line_id(self, line_id: int) -> None:
        """Remember that a line (tag and set index) has been brought in."""
        self._accessed_lines.add(line_id)

    def line_accessed(self, line_id: int) -> bool:
        """Whether the line has been brought into the cache before."""
        return line_id in self._accessed_lines

    def find_cache_line(self, set_idx: int, tag: int) -> CacheLine | None:
        """Return the first line in the set carrying ``tag``, or None."""
        return next((line for line in self._sets[set_idx] if line.tag == tag), None)

    def mem_access(self, address: int, rw: str, is_prefetch: bool = False) -> None:
        """Perform one read (``'R'``) or write (``'W'``) of ``address``."""
        address &= ADDRESS_MASK
        if is_prefetch:
            self._emit(f"  prefetch: 0x{address:x}")
        else:
            self.stats.accesses += 1

        offset = address & self.offset_mask
        set_idx = (address & self.set_index_mask) >> self.offset_bits
        tag = address >> (self.offset_bits + self.index_bits)
        line_id = address >> self.offset_bits

        line = self.find_cache_line(set_idx, tag)
        cache_miss = line is None or line.status is CacheStatus.INVALID
        if cache_miss:
            self._emit(f"  0x{address:x} miss")
            if not is_prefetch:
                self.stats.misses += 1
                if self.line_accessed(line_id):
                    self.stats.conflict_misses += 1
                else:
                    self.stats.compulsory_misses += 1
                    self.add_line_id(line_id)

            lines = self._sets[set_idx]
            insert_index = next(
                (i for i, candidate in enumerate(lines) if candidate.status is CacheStatus.INVALID),
                None,
            )
            if insert_index is None:
                evicted_index = self.replacement_policy.eviction_index(self, set_idx)
                if not 0 <= evicted_index < self.associativity:
                    raise EvictionError(f"Eviction index {evicted_index} is outside of the set!")
                evicted = lines[evicted_index]
                if evicted.is_dirty:
                    self.stats.dirty_evictions += 1
                kind = "dirty" if evicted.is_dirty else "clean"
                self._emit(
                    f"  evict {kind} cache line from set {set_idx} index {evicted_index}"
                )
                insert_index = evicted_index

            self._emit(
                f"  store cache line with tag 0x{tag:x} in set {set_idx} index {insert_index}"
            )
            line = lines[insert_index]
            line.tag = tag
            line.status = CacheStatus.MODIFIED if rw == "W" else CacheStatus.EXCLUSIVE
        else:
            self._emit(f"  0x{address:x} hit: set {set_idx}, tag 0x{tag:x}, offset {offset}")
            if not is_prefetch:
                self.stats.hits += 1
            if rw == "W":
                line.status = CacheStatus.MODIFIED

        self.replacement_policy.cache_access(self, set_idx, tag)

        if not is_prefetch and self.prefetcher is not None:
            self.stats.prefetches += self.prefetcher.handle_mem_access(self, address, cache_miss)