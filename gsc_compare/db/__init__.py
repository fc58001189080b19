"""Database utilities for loading stored snapshots."""
from .engine import create_snapshot_engine

__all__ = ["create_snapshot_engine"]
