"""CSV helpers for seeding the holding store and exporting the change log."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from core.domain.change import PortfolioChange
from core.domain.holding import Holding

logger = logging.getLogger(__name__)

COLUMN_MAP = {
    "fund": "fund_id",
    "fundid": "fund_id",
    "symbol": "stock_symbol",
    "ticker": "stock_symbol",
    "stocksymbol": "stock_symbol",
    "name": "stock_name",
    "company": "stock_name",
    "stockname": "stock_name",
    "weight": "percentage",
    "weight_(%)": "percentage",
    "weight%": "percentage",
    "%_of_assets": "percentage",
    "market_value_($)": "market_value",
    "market_value_$": "market_value",
    "marketvalue": "market_value",
    "shares": "quantity",
    "1m_change": "one_month_change",
    "onemonthchange": "one_month_change",
}

NUMERIC_COLUMNS = ("percentage", "market_value", "quantity", "one_month_change")
REQUIRED_COLUMNS = {"stock_symbol", "stock_name", "percentage", "sector", "market_value"}

CHANGE_COLUMNS = [
    "fund_id",
    "date",
    "change_type",
    "stock_symbol",
    "stock_name",
    "sector",
    "old_percentage",
    "new_percentage",
    "change_amount",
    "significance",
]


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize column names to snake_case."""
    columns = []
    for raw in df.columns:
        key = str(raw).strip().lower()
        key = re.sub(r"[ /]", "_", key)
        key = COLUMN_MAP.get(key, key)
        columns.append(key)
    df = df.copy()
    df.columns = columns
    return df


def parse_numeric_series(series: pd.Series) -> pd.Series:
    """Strip common formatting characters and parse as float."""
    cleaned = series.astype(str).str.replace(r"[\$,()%]", "", regex=True).str.strip()
    return pd.to_numeric(cleaned, errors="coerce")


def dataframe_to_holdings(df: pd.DataFrame, *, fund_id: str | None = None) -> list[Holding]:
    """Convert a holdings table into domain holdings.

    ``fund_id`` overrides any fund column in the table and is required when the table has none.
    """

    df = normalize_columns(df)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Holdings CSV is missing columns: {', '.join(sorted(missing))}")
    if fund_id is None and "fund_id" not in df.columns:
        raise ValueError("Holdings CSV has no fund column; pass fund_id explicitly")

    for column in NUMERIC_COLUMNS:
        if column in df.columns:
            df[column] = parse_numeric_series(df[column])
    df["stock_symbol"] = df["stock_symbol"].fillna("").astype(str).str.strip().str.upper()

    holdings: list[Holding] = []
    for _, row in df.iterrows():
        symbol = row["stock_symbol"]
        if pd.isna(symbol) or not symbol or symbol == "NAN":
            logger.warning("Skipping holdings row without a symbol: %s", row.to_dict())
            continue
        if pd.isna(row["percentage"]) or pd.isna(row["market_value"]):
            logger.warning("Skipping %s: weight or market value is not numeric", symbol)
            continue
        fund = fund_id if fund_id is not None else _text(row["fund_id"])
        if not fund:
            logger.warning("Skipping %s: no fund id", symbol)
            continue
        holdings.append(
            Holding(
                fund_id=fund,
                stock_symbol=symbol,
                stock_name=_text(row.get("stock_name")),
                percentage=float(row["percentage"]),
                sector=_text(row.get("sector")),
                market_value=float(row["market_value"]),
                quantity=_maybe_float(row.get("quantity")),
                one_month_change=_maybe_float(row.get("one_month_change")),
            )
        )
    return holdings


def load_holdings_csv(path: str | Path, *, fund_id: str | None = None) -> list[Holding]:
    csv_path = Path(path)
    logger.debug("Loading holdings csv: %s", csv_path)
    holdings = dataframe_to_holdings(pd.read_csv(csv_path), fund_id=fund_id)
    logger.info("Loaded %d holdings from %s", len(holdings), csv_path)
    return holdings


def changes_to_dataframe(changes: Sequence[PortfolioChange]) -> pd.DataFrame:
    """Flatten changes into a DataFrame with enum values as plain strings."""
    rows = [change.model_dump(mode="json") for change in changes]
    df = pd.DataFrame(rows, columns=CHANGE_COLUMNS)
    if df.empty:
        logger.warning("No portfolio changes to export")
    return df


def write_changes_csv(changes: Sequence[PortfolioChange], path: str | Path) -> None:
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    df = changes_to_dataframe(changes)
    df.to_csv(csv_path, index=False)
    logger.debug("Wrote changes csv: %s (rows=%d)", csv_path, len(df))


def _text(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _maybe_float(value: object) -> float | None:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
        return float(value)
    except (TypeError, ValueError):
        return None
