"""Port interfaces for adapters."""

from core.ports.holding_store import HoldingStore
from core.ports.snapshot_store import SnapshotStore

__all__ = ["HoldingStore", "SnapshotStore"]
