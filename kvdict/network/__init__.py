"""Network module for KV-Dict."""

from .tcp_server import KVServer

__all__ = ["KVServer"]
