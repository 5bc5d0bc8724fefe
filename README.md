# cachesim

A trace-driven simulator for a single-level, set-associative cache with
32-bit addresses. It reads memory accesses from standard input, models hits,
misses, evictions and write-backs, and reports statistics at the end of the
run. The replacement policy and the prefetcher are chosen on the command line.

## Installation

```
pip install .
```

## Usage

```
cachesim POLICY CACHE_SIZE CACHE_LINES ASSOCIATIVITY PREFETCHER PREFETCH_AMOUNT < trace.txt
```

The same command can be run as `python -m cachesim.cli ...`.

Arguments (all six are required):

- `POLICY`: replacement policy, one of `LRU`, `RAND`, `LRU_PREFER_CLEAN`
- `CACHE_SIZE`: total cache size in bytes
- `CACHE_LINES`: number of cache lines
- `ASSOCIATIVITY`: number of lines per set
- `PREFETCHER`: prefetch strategy, one of `NULL`, `ADJACENT`, `SEQUENTIAL`, `CUSTOM`
- `PREFETCH_AMOUNT`: number of lines the `SEQUENTIAL` prefetcher fetches ahead
  (read by the other strategies but not used)

Numeric arguments are read as leading decimal integers; text that does not
start with a number counts as 0. The line size is `CACHE_SIZE / CACHE_LINES`
and the number of sets is `CACHE_LINES / ASSOCIATIVITY` (integer division).
Both should be powers of two.

The command exits with status 1 and a message on standard error when the
argument count is wrong, `CACHE_LINES` or `ASSOCIATIVITY` is zero, the
derived line size or set count is not positive, the policy or prefetcher name
is unknown, a trace line is malformed, or a policy picks an eviction index
outside the set. Otherwise it exits with status 0.

### Trace format

Each non-blank line of the trace holds one access: an access kind and a
hexadecimal address, separated by whitespace. Only the first character of
the kind is used; `R` is a read and anything else is treated as a write for
logging, while only `W` marks a line dirty. The address may carry a `0x`
prefix and is truncated to 32 bits.

```
R 0x1000
W 0x1004
R 2040
```

### Example

With the three-line trace above in `trace.txt`:

```
cachesim LRU 1024 16 4 ADJACENT 0 < trace.txt
```

The simulator prints the parameters, the cache geometry (index, offset and
tag bits, and the masks), a log line for every access, prefetch, eviction and
store, and then a summary:

```
OUTPUT ACCESSES 3
OUTPUT HITS 1
OUTPUT MISSES 2
OUTPUT PREFETCHES 3
OUTPUT COMPULSORY MISSES 2
OUTPUT CONFLICT MISSES 0
OUTPUT DIRTY EVICTIONS 0
OUTPUT HIT RATIO 0.33333333
```

Prefetched lines are counted whether or not they were already present.
A miss on a line that has never been brought in before is compulsory; a miss
on a line seen earlier is a conflict miss. With an empty trace the hit ratio
is printed as `nan`.

## Policies and prefetchers

- `LRU` (`LRUPolicy`) evicts the least recently used line of the set.
- `RAND` (`RandomPolicy`) evicts a line of the set chosen at random.
- `LRU_PREFER_CLEAN` (`LRUPreferCleanPolicy`) evicts the least recently used
  clean line, and falls back to the least recently used line only when every
  line is dirty.
- `NULL` (`NullPrefetcher`) never prefetches.
- `ADJACENT` (`AdjacentPrefetcher`) prefetches the next line after every
  demand access.
- `SEQUENTIAL` (`SequentialPrefetcher`) prefetches the next
  `PREFETCH_AMOUNT` lines after every demand access.
- `CUSTOM` (`CustomPrefetcher`) tracks up to 16 access streams, detects
  constant strides and, once a stride has been seen twice in a row,
  prefetches one or more lines ahead, up to four as its confidence grows.

## Library use

The modules can be used directly:

- `cachesim.memory_system`: `CacheSystem`, `CacheStats`, `CacheLine`,
  `CacheStatus` and `EvictionError`
- `cachesim.replacement_policies`: `ReplacementPolicy` and its subclasses,
  and `create_replacement_policy(name, sets, associativity)`
- `cachesim.prefetchers`: `Prefetcher` and its subclasses, `StreamEntry`,
  and `create_prefetcher(name, prefetch_amount=0)`
- `cachesim.cli`: `parse_trace(stream)` and `main(argv=None)`

```python
from cachesim.memory_system import CacheSystem
from cachesim.replacement_policies import create_replacement_policy
from cachesim.prefetchers import create_prefetcher

policy = create_replacement_policy("LRU", 4, 4)
prefetcher = create_prefetcher("SEQUENTIAL", 2)
cache = CacheSystem(64, 4, 4, policy, prefetcher, None)
cache.mem_access(0x1000, "R", False)
print(cache.stats)
print(cache.stats.hit_ratio)
```

Passing a text stream as the last argument of `CacheSystem` writes the
geometry and the per-access log to it; `None` keeps it quiet. `CacheSystem`
raises `ValueError` for a non-positive line size, set count or
associativity. `RandomPolicy` accepts a `random.Random` instance for
reproducible runs.

## Limits

The simulator models one cache level only, with no timing, no memory
contents and no multi-processor coherence beyond the clean/dirty state of
each line.

## Running the tests

```
pip install ".[test]"
pytest
```