from __future__ import annotations

from datetime import datetime, timedelta

from conftest import TODAY, YESTERDAY, make_holding

from core.domain.change import ChangeType
from core.domain.holding import HoldingSnapshot
from toolkits.snapshots import ChangeDetector, compute_portfolio_snapshot


def _seed_holding_snapshots(store, day, weights, fund_id="ARKK") -> None:
    store.save_holding_snapshots(
        [HoldingSnapshot.from_holding(make_holding(symbol, weight, fund_id=fund_id), day) for symbol, weight in weights.items()]
    )


def _detector(store) -> ChangeDetector:
    return ChangeDetector(store, clock=lambda: TODAY)


def test_compare_explicit_days(store) -> None:
    _seed_holding_snapshots(store, YESTERDAY, {"A": 10.0, "B": 5.0})
    _seed_holding_snapshots(store, TODAY, {"A": 13.0, "C": 2.0})

    changes = _detector(store).compare_snapshots("ARKK", YESTERDAY, TODAY)

    assert {(c.stock_symbol, c.change_type) for c in changes} == {
        ("A", ChangeType.INCREASE),
        ("B", ChangeType.EXIT),
        ("C", ChangeType.ADDITION),
    }
    assert store.list_changes("ARKK", since=YESTERDAY) == []


def test_compare_accepts_timestamps(store) -> None:
    _seed_holding_snapshots(store, YESTERDAY, {"A": 10.0})
    _seed_holding_snapshots(store, TODAY, {"A": 11.0})

    changes = _detector(store).compare_snapshots(
        "ARKK", datetime(2026, 3, 9, 18, 30), datetime(2026, 3, 10, 0, 5)
    )

    assert [c.change_amount for c in changes] == [1.0]


def test_compare_defaults_to_latest_two_days(store) -> None:
    _seed_holding_snapshots(store, TODAY - timedelta(days=5), {"A": 1.0})
    _seed_holding_snapshots(store, YESTERDAY, {"A": 10.0})
    _seed_holding_snapshots(store, TODAY, {"A": 12.0})

    changes = _detector(store).compare_snapshots("ARKK")

    assert [(c.stock_symbol, c.old_percentage, c.new_percentage) for c in changes] == [("A", 10.0, 12.0)]


def test_single_date_is_treated_as_no_dates(store) -> None:
    _seed_holding_snapshots(store, YESTERDAY, {"A": 10.0})
    _seed_holding_snapshots(store, TODAY, {"A": 12.0})

    changes = _detector(store).compare_snapshots("ARKK", from_date=YESTERDAY - timedelta(days=30))

    assert len(changes) == 1


def test_fewer_than_two_days_yields_no_changes(store) -> None:
    _seed_holding_snapshots(store, TODAY, {"A": 10.0})

    assert _detector(store).compare_snapshots("ARKK") == []


def test_missing_side_yields_no_changes(store) -> None:
    _seed_holding_snapshots(store, TODAY, {"A": 10.0})

    assert _detector(store).compare_snapshots("ARKK", YESTERDAY, TODAY) == []


def test_portfolio_snapshot_is_used_when_holding_snapshots_missing(store) -> None:
    yesterday_holdings = [make_holding("A", 10.0), make_holding("B", 6.0)]
    store.save_portfolio_snapshot(compute_portfolio_snapshot("ARKK", yesterday_holdings, YESTERDAY))
    _seed_holding_snapshots(store, TODAY, {"A": 10.0, "B": 3.0})

    detector = _detector(store)
    changes = detector.compare_snapshots("ARKK", YESTERDAY, TODAY)

    assert detector.resolve_state("ARKK", YESTERDAY).source == "portfolio_snapshot"
    assert detector.resolve_state("ARKK", TODAY).source == "holding_snapshots"
    assert [(c.stock_symbol, c.change_type, c.change_amount) for c in changes] == [("B", ChangeType.DECREASE, -3.0)]


def test_holding_snapshots_win_over_portfolio_snapshot(store) -> None:
    holdings = [make_holding(f"S{i:02d}", 5.0) for i in range(12)]
    store.save_portfolio_snapshot(compute_portfolio_snapshot("ARKK", holdings, YESTERDAY, top_n=10))
    _seed_holding_snapshots(store, YESTERDAY, {h.stock_symbol: h.percentage for h in holdings})
    _seed_holding_snapshots(store, TODAY, {h.stock_symbol: h.percentage for h in holdings})

    assert _detector(store).compare_snapshots("ARKK", YESTERDAY, TODAY) == []


def test_detect_and_persist_is_idempotent(store) -> None:
    _seed_holding_snapshots(store, YESTERDAY, {"A": 10.0, "B": 5.0})
    _seed_holding_snapshots(store, TODAY, {"A": 13.0})
    detector = _detector(store)

    first = detector.detect_and_persist_changes("ARKK")
    second = detector.detect_and_persist_changes("ARKK")

    assert len(first) == len(second) == 2
    stored = store.list_changes("ARKK", since=YESTERDAY)
    assert len(stored) == 2
    assert all(change.date == TODAY for change in stored)


def test_detect_without_yesterday_records_nothing(store) -> None:
    _seed_holding_snapshots(store, TODAY, {"A": 13.0})

    assert _detector(store).detect_and_persist_changes("ARKK") == []
    assert store.list_changes("ARKK", since=YESTERDAY) == []
