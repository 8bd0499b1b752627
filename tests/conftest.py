from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure the application package is importable when running tests directly via pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore  # noqa: E402
from core.domain.holding import Holding  # noqa: E402
from core.settings import get_settings  # noqa: E402

TODAY = date(2026, 3, 10)
YESTERDAY = date(2026, 3, 9)


def make_holding(
    symbol: str,
    percentage: float,
    *,
    fund_id: str = "ARKK",
    sector: str = "Technology",
    market_value: float | None = None,
    name: str | None = None,
) -> Holding:
    return Holding(
        fund_id=fund_id,
        stock_symbol=symbol,
        stock_name=name or f"{symbol} Inc",
        percentage=percentage,
        sector=sector,
        market_value=market_value if market_value is not None else percentage * 100,
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path) -> SqlAlchemySnapshotStore:
    snapshot_store = SqlAlchemySnapshotStore(f"sqlite:///{tmp_path / 'snapshots.db'}")
    yield snapshot_store
    snapshot_store.close()
