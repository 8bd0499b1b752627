from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from core.domain.holding import Holding


class HoldingStore(Protocol):
    """Current, mutable per-fund holdings written by the ingestion pipeline."""

    def replace_holdings(self, fund_id: str, holdings: Sequence[Holding]) -> None:
        """Overwrite every current holding of the fund."""

    def list_holdings(self, fund_id: str) -> list[Holding]:
        """Return current holdings ordered by weight, largest first."""

    def list_fund_ids(self) -> list[str]:
        """Return every fund that currently has holdings."""
