from __future__ import annotations

from datetime import date

import pytest

from core.domain.change import ChangeType, Significance
from toolkits.snapshots import PortfolioState, WeightedPosition, classify_significance, diff_states, summarize_changes
from toolkits.snapshots.diff import SignificanceThresholds

BASE_DAY = date(2026, 3, 9)
TARGET_DAY = date(2026, 3, 10)


def _state(day: date, weights: dict[str, float], fund_id: str = "ARKK") -> PortfolioState:
    positions = {symbol: WeightedPosition(f"{symbol} Inc", weight, "Tech") for symbol, weight in weights.items()}
    return PortfolioState(fund_id=fund_id, date=day, positions=positions)


def test_diff_classifies_additions_exits_and_moves() -> None:
    base = _state(BASE_DAY, {"A": 10.0, "B": 5.0, "C": 3.0})
    target = _state(TARGET_DAY, {"A": 12.5, "B": 5.05, "D": 1.0})

    changes = diff_states(base, target)

    assert [(c.stock_symbol, c.change_type, c.change_amount, c.significance) for c in changes] == [
        ("C", ChangeType.EXIT, -3.0, Significance.HIGH),
        ("A", ChangeType.INCREASE, 2.5, Significance.HIGH),
        ("D", ChangeType.ADDITION, 1.0, Significance.MEDIUM),
    ]
    assert all(change.date == TARGET_DAY for change in changes)
    exit_change = changes[0]
    assert exit_change.old_percentage == 3.0
    assert exit_change.new_percentage is None


def test_moves_at_or_below_noise_are_ignored() -> None:
    base = _state(BASE_DAY, {"A": 10.0, "B": 10.0})
    target = _state(TARGET_DAY, {"A": 10.1, "B": 10.05})

    assert diff_states(base, target) == []


def test_small_move_above_noise_is_low() -> None:
    base = _state(BASE_DAY, {"A": 10.0})
    target = _state(TARGET_DAY, {"A": 10.2})

    changes = diff_states(base, target)

    assert len(changes) == 1
    assert changes[0].change_type is ChangeType.INCREASE
    assert changes[0].change_amount == pytest.approx(0.2)
    assert changes[0].significance is Significance.LOW


def test_decrease_carries_negative_amount() -> None:
    changes = diff_states(_state(BASE_DAY, {"A": 8.0}), _state(TARGET_DAY, {"A": 7.25}))

    assert changes[0].change_type is ChangeType.DECREASE
    assert changes[0].change_amount == pytest.approx(-0.75)
    assert changes[0].significance is Significance.MEDIUM


@pytest.mark.parametrize(
    ("magnitude", "expected"),
    [
        (2.0, Significance.HIGH),
        (1.999, Significance.MEDIUM),
        (0.5, Significance.MEDIUM),
        (0.499, Significance.LOW),
        (-2.5, Significance.HIGH),
    ],
)
def test_significance_boundaries(magnitude: float, expected: Significance) -> None:
    assert classify_significance(magnitude) is expected


def test_custom_thresholds() -> None:
    thresholds = SignificanceThresholds(high=5.0, medium=1.0)

    assert classify_significance(2.0, thresholds) is Significance.MEDIUM
    assert classify_significance(0.9, thresholds) is Significance.LOW


def test_reverse_diff_swaps_additions_and_exits() -> None:
    base = _state(BASE_DAY, {"A": 4.0, "B": 2.0})
    target = _state(TARGET_DAY, {"B": 2.0, "C": 1.0})

    forward = diff_states(base, target)
    backward = diff_states(target, base)

    added = {c.stock_symbol for c in forward if c.change_type is ChangeType.ADDITION}
    exited = {c.stock_symbol for c in backward if c.change_type is ChangeType.EXIT}
    assert added == exited == {"C"}


def test_reverse_diff_swaps_increases_and_decreases() -> None:
    base = _state(BASE_DAY, {"A": 10.0, "B": 5.0})
    target = _state(TARGET_DAY, {"A": 12.5, "B": 4.0})

    forward = {c.stock_symbol: (c.change_type, c.change_amount) for c in diff_states(base, target)}
    backward = {c.stock_symbol: (c.change_type, c.change_amount) for c in diff_states(target, base)}

    assert forward == {"A": (ChangeType.INCREASE, pytest.approx(2.5)), "B": (ChangeType.DECREASE, pytest.approx(-1.0))}
    assert backward == {"A": (ChangeType.DECREASE, pytest.approx(-2.5)), "B": (ChangeType.INCREASE, pytest.approx(1.0))}


def test_identical_states_have_no_changes() -> None:
    state = _state(BASE_DAY, {"A": 4.0, "B": 2.0})

    assert diff_states(state, state) == []


def test_diff_rejects_different_funds() -> None:
    with pytest.raises(ValueError):
        diff_states(_state(BASE_DAY, {"A": 1.0}), _state(TARGET_DAY, {"A": 1.0}, fund_id="ARKW"))


def test_summarize_changes_splits_buys_and_sells() -> None:
    base = _state(BASE_DAY, {"A": 10.0, "B": 5.0, "C": 3.0})
    target = _state(TARGET_DAY, {"A": 12.5, "B": 4.0, "D": 1.0})

    summary = summarize_changes(diff_states(base, target), top_n=1)

    assert [c.stock_symbol for c in summary["buys"]] == ["A"]
    assert [c.stock_symbol for c in summary["sells"]] == ["C"]
