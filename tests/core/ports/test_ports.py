from __future__ import annotations

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore
from core.ports import HoldingStore, SnapshotStore

HOLDING_METHODS = {"replace_holdings", "list_holdings", "list_fund_ids"}
SNAPSHOT_METHODS = {
    "save_portfolio_snapshot",
    "save_holding_snapshots",
    "get_portfolio_snapshot",
    "list_portfolio_snapshots",
    "list_holding_snapshots",
    "list_holding_snapshot_history",
    "latest_holding_snapshot_days",
    "append_changes",
    "list_changes",
    "list_changes_by_significance",
}


def test_ports_expose_expected_methods() -> None:
    assert HOLDING_METHODS <= set(HoldingStore.__dict__)
    assert SNAPSHOT_METHODS <= set(SnapshotStore.__dict__)


def test_sqlalchemy_store_implements_both_ports() -> None:
    for name in HOLDING_METHODS | SNAPSHOT_METHODS:
        assert callable(getattr(SqlAlchemySnapshotStore, name))
