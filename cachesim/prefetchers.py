"""Prefetchers that pull extra lines into the cache after a demand access."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cachesim.memory_system import ADDRESS_MASK, EvictionError

if TYPE_CHECKING:
    from cachesim.memory_system import CacheSystem

STREAM_TABLE_SIZE = 16
CONFIDENCE_THRESHOLD = 2
MAX_PREFETCH_DISTANCE = 4
MAX_CONFIDENCE = 255


def _prefetch(cache_system: CacheSystem, address: int) -> bool:
    """Bring ``address`` into the cache as a prefetch; report whether it worked."""
    try:
        cache_system.mem_access(address & ADDRESS_MASK, "R", True)
    except EvictionError:
        return False
    return True


def _to_signed32(value: int) -> int:
    value &= ADDRESS_MASK
    return value - (1 << 32) if value & 0x80000000 else value


class Prefetcher(ABC):
    """Interface every prefetch strategy implements."""

    @abstractmethod
    def handle_mem_access(self, cache_system: CacheSystem, address: int, is_miss: bool) -> int:
        """Prefetch whatever the strategy wants; return the number of lines prefetched."""


class NullPrefetcher(Prefetcher):
    """Never prefetches anything."""

    def handle_mem_access(self, cache_system: CacheSystem, address: int, is_miss: bool) -> int:
        return 0


class AdjacentPrefetcher(Prefetcher):
    """Prefetches the line right after the one accessed."""

    def handle_mem_access(self, cache_system: CacheSystem, address: int, is_miss: bool) -> int:
        return int(_prefetch(cache_system, address + cache_system.line_size))


class SequentialPrefetcher(Prefetcher):
    """Prefetches the next ``prefetch_amount`` lines after the one accessed."""

    def __init__(self, prefetch_amount: int) -> None:
        self.prefetch_amount = prefetch_amount

    def handle_mem_access(self, cache_system: CacheSystem, address: int, is_miss: bool) -> int:
        line_size = cache_system.line_size
        return sum(
            _prefetch(cache_system, address + i * line_size)
            for i in range(1, self.prefetch_amount + 1)
        )


@dataclass
class StreamEntry:
    """One tracked access stream of the stride prefetcher."""

    last_address: int = 0
    stride: int = 0
    confidence: int = 0
    valid: bool = False

    def reset(self, address: int) -> None:
        self.last_address = address
        self.stride = 0
        self.confidence = 0


class CustomPrefetcher(Prefetcher):
    """Stride prefetcher that follows a small table of access streams."""

    def __init__(self) -> None:
        self.streams = [StreamEntry() for _ in range(STREAM_TABLE_SIZE)]
        self.next_stream = 0
        self.prefetches_issued = 0
        self.useful_prefetches = 0

    def _find_or_allocate_stream(self, address: int) -> StreamEntry:
        for entry in self.streams:
            if entry.valid and (
                address == entry.last_address
                or address == (entry.last_address + entry.stride) & ADDRESS_MASK
            ):
                return entry
            if not entry.valid:
                entry.valid = True
                entry.reset(address)
                return entry

        victim = self.streams[self.next_stream]
        self.next_stream = (self.next_stream + 1) % STREAM_TABLE_SIZE
        victim.reset(address)
        return victim

    def handle_mem_access(self, cache_system: CacheSystem, address: int, is_miss: bool) -> int:
        line_address = address - (address % cache_system.line_size)
        stream = self._find_or_allocate_stream(line_address)
        if stream.last_address == line_address:
            return 0

        current_stride = _to_signed32(line_address - stream.last_address)
        if stream.stride == current_stride:
            stream.confidence = min(stream.confidence + 1, MAX_CONFIDENCE)
        else:
            stream.stride = current_stride
            stream.confidence = 1
        stream.last_address = line_address

        if stream.confidence < CONFIDENCE_THRESHOLD:
            return 0

        if stream.confidence > 10:
            distance = MAX_PREFETCH_DISTANCE
        else:
            distance = stream.confidence // 5 + 1

        prefetched = 0
        for i in range(1, distance + 1):
            if _prefetch(cache_system, line_address + i * stream.stride):
                prefetched += 1
                self.prefetches_issued += 1
        return prefetched


def create_prefetcher(name: str, prefetch_amount: int = 0) -> Prefetcher:
    """Build the prefetcher named ``NULL``, ``ADJACENT``, ``SEQUENTIAL`` or ``CUSTOM``."""
    if name == "NULL":
        return NullPrefetcher()
    if name == "ADJACENT":
        return AdjacentPrefetcher()
    if name == "SEQUENTIAL":
        return SequentialPrefetcher(prefetch_amount)
    if name == "CUSTOM":
        return CustomPrefetcher()
    raise ValueError(f"Unknown prefetch strategy {name}")