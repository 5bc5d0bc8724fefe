"""Command-line driver: reads a memory trace from stdin and reports statistics."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Iterator

from cachesim.memory_system import ADDRESS_MASK, CacheSystem, EvictionError
from cachesim.prefetchers import create_prefetcher
from cachesim.replacement_policies import create_replacement_policy

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _strtol(text: str) -> int:
    """Parse a leading decimal integer, giving 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_trace(stream: Iterable[str]) -> Iterator[tuple[str, int]]:
    """Yield ``(rw, address)`` pairs from lines such as ``R 0x1f``."""
    for number, raw in enumerate(stream, start=1):
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 2:
            raise ValueError(f"Malformed trace line {number}: {line!r}")
        rw, address_text = parts
        try:
            address = int(address_text, 16)
        except ValueError:
            raise ValueError(f"Malformed address on trace line {number}: {address_text!r}") from None
        yield rw[0], address & ADDRESS_MASK


def main(argv: list[str] | None = None) -> int:
    """Run the simulator; return the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 6:
        print("Incorrect number of arguments.", file=sys.stderr)
        return 1

    policy_name = args[0]
    cache_size = _strtol(args[1])
    cache_lines = _strtol(args[2])
    associativity = _strtol(args[3])
    prefetch_strategy = args[4]
    prefetch_amount = _strtol(args[5])

    if cache_lines == 0 or associativity == 0:
        print("Cache lines and associativity must be non-zero.", file=sys.stderr)
        return 1
    line_size = cache_size // cache_lines
    sets = cache_lines // associativity

    out = sys.stdout
    print("Parameter Info", file=out)
    print("==============", file=out)
    print(f"Replacement Policy: {policy_name}", file=out)
    print(f"Prefetch Strategy: {prefetch_strategy}", file=out)
    print(f"Prefetch Amount: {prefetch_amount}", file=out)
    print(f"Cache Size: {cache_size}", file=out)
    print(f"Cache Lines: {cache_lines}", file=out)
    print(f"Associativity: {associativity}", file=out)
    print(f"Line Size: {line_size}B", file=out)
    print(f"Number of Sets: {sets}", file=out)

    try:
        policy = create_replacement_policy(policy_name, max(sets, 0), associativity)
        prefetcher = create_prefetcher(prefetch_strategy, prefetch_amount)
        cache = CacheSystem(line_size, sets, associativity, policy, prefetcher, out)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        for rw, address in parse_trace(sys.stdin):
            print(f"{'read' if rw == 'R' else 'write'} at 0x{address:x}", file=out)
            cache.mem_access(address, rw, False)
    except (ValueError, EvictionError) as exc:
        print(exc, file=sys.stderr)
        return 1

    stats = cache.stats
    print("\n\nStatistics", file=out)
    print("==========", file=out)
    print(f"OUTPUT ACCESSES {stats.accesses}", file=out)
    print(f"OUTPUT HITS {stats.hits}", file=out)
    print(f"OUTPUT MISSES {stats.misses}", file=out)
    print(f"OUTPUT PREFETCHES {stats.prefetches}", file=out)
    print(f"OUTPUT COMPULSORY MISSES {stats.compulsory_misses}", file=out)
    print(f"OUTPUT CONFLICT MISSES {stats.conflict_misses}", file=out)
    print(f"OUTPUT DIRTY EVICTIONS {stats.dirty_evictions}", file=out)
    print(f"OUTPUT HIT RATIO {stats.hit_ratio:.8f}", file=out)
    return 0


if __name__ == "__main__":
    sys.exit(main())