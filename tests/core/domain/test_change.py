from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from core.domain.change import ChangeType, PortfolioChange, Significance


def _change(change_type: ChangeType, amount: float, **kwargs) -> PortfolioChange:
    return PortfolioChange(
        fund_id="ARKK",
        date=date(2026, 3, 10),
        change_type=change_type,
        stock_symbol="TSLA",
        stock_name="Tesla Inc",
        sector="Tech",
        change_amount=amount,
        significance=Significance.LOW,
        **kwargs,
    )


def test_change_amount_sign_must_match_type() -> None:
    with pytest.raises(ValidationError):
        _change(ChangeType.INCREASE, -0.5, old_percentage=5.0, new_percentage=4.5)
    with pytest.raises(ValidationError):
        _change(ChangeType.DECREASE, 0.5, old_percentage=5.0, new_percentage=5.5)


def test_addition_and_exit_require_their_side() -> None:
    with pytest.raises(ValidationError):
        _change(ChangeType.ADDITION, 1.0)
    with pytest.raises(ValidationError):
        _change(ChangeType.EXIT, -1.0)

    exit_change = _change(ChangeType.EXIT, -1.0, old_percentage=1.0)
    assert exit_change.new_percentage is None
    assert exit_change.magnitude == 1.0


def test_change_serializes_enums_as_strings() -> None:
    change = _change(ChangeType.ADDITION, 2.5, new_percentage=2.5)

    payload = change.model_dump(mode="json")

    assert payload["change_type"] == "ADDITION"
    assert payload["significance"] == "LOW"
    assert payload["date"] == "2026-03-10"
