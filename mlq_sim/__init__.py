"""
MLQ simulator package.

Simulates Multilevel Queue CPU scheduling (two round-robin queues above a
priority queue) tick by tick and reports per-process metrics.
"""

__all__ = ["cli", "models", "queues", "scheduler"]
