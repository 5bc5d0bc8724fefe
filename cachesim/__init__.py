"""Trace-driven set-associative cache simulator with replacement policies and prefetchers."""

__version__ = "0.1.0"

__all__ = ["cli", "memory_system", "prefetchers", "replacement_policies"]