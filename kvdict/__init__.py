"""
KV-Dict: Multi-Valued Key-Value Store

An in-memory dictionary server that maps each key to an ordered set of
values, served over a line-oriented TCP protocol built on Python asyncio
and snapshotted to disk on a fixed interval.
"""

__version__ = "1.0.0"
