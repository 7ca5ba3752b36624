"""Unit tests for the volume history pivot and decayed gap fill."""

import numpy as np
import pytest

from online.backend.core.errors import SchemaMismatchError
from online.backend.engine.history_pivot import HistoryPivot, round_half_up
from provider_stubs import ExplodingRng, FixedRng


def _record(year, month, term, volume):
    return {"year": year, "month": month, "search_term": term, "search_volume_estimate": volume}


def test_complete_series_is_left_untouched() -> None:
    """With every (period, term) present no decay is ever drawn."""
    records = [
        _record(2024, month, term, month * 100 + i)
        for month in (1, 2, 3)
        for i, term in enumerate(["yoga mat", "yoga block"])
    ]

    table = HistoryPivot(rng=ExplodingRng()).pivot(records)

    assert table.to_rows() == [
        ["Date", "yoga mat", "yoga block"],
        ["2024-01", 100, 101],
        ["2024-02", 200, 201],
        ["2024-03", 300, 301],
    ]


def test_terms_keep_first_seen_order_and_dates_sort() -> None:
    records = [
        _record(2024, 11, "b", 1),
        _record(2023, 2, "a", 2),
        _record(2024, 1, "b", 3),
        _record(2023, 2, "b", 4),
        _record(2024, 11, "a", 5),
        _record(2024, 1, "a", 6),
    ]

    table = HistoryPivot(rng=ExplodingRng()).pivot(records)

    assert table.header == ["Date", "b", "a"]
    assert [row[0] for row in table.rows] == ["2023-02", "2024-01", "2024-11"]


def test_terms_are_trimmed_and_lowercased() -> None:
    table = HistoryPivot(rng=ExplodingRng()).pivot([_record(2024, 1, "  Yoga Mat ", 10)])

    assert table.header == ["Date", "yoga mat"]


def test_later_duplicate_overwrites_earlier() -> None:
    records = [_record(2024, 1, "a", 10), _record(2024, 1, "A", 99)]

    table = HistoryPivot(rng=ExplodingRng()).pivot(records)

    assert table.rows == [["2024-01", 99]]


def test_forward_fill_compounds_decay() -> None:
    records = [_record(2024, 1, "a", 100), _record(2024, 2, "b", 7), _record(2024, 3, "b", 7)]

    table = HistoryPivot(rng=FixedRng(0.5)).pivot(records)

    assert [row[1] for row in table.rows] == [100, 50, 25]


def test_carry_is_capped_before_decay() -> None:
    records = [_record(2024, 1, "a", 50000), _record(2024, 2, "b", 1)]

    table = HistoryPivot(rng=FixedRng(0.75)).pivot(records)

    assert table.rows[1][1] == 750


def test_backward_pass_fills_leading_blanks() -> None:
    records = [_record(2024, 1, "b", 1), _record(2024, 2, "b", 1), _record(2024, 3, "a", 200)]

    table = HistoryPivot(rng=FixedRng(0.5)).pivot(records)

    assert table.header == ["Date", "b", "a"]
    column = table.header.index("a")
    assert [row[column] for row in table.rows] == [50, 100, 200]


def test_real_measurement_resets_the_carry() -> None:
    records = [
        _record(2024, 1, "a", 400),
        _record(2024, 2, "b", 1),
        _record(2024, 3, "a", 10),
        _record(2024, 4, "b", 1),
    ]

    table = HistoryPivot(rng=FixedRng(0.5)).pivot(records)

    assert [row[1] for row in table.rows] == [400, 200, 10, 5]


def test_term_without_any_volume_stays_blank() -> None:
    """A keyword the provider only reports with null volumes has no anchor and is never filled."""
    records = [
        _record(2024, 1, "a", 120),
        _record(2024, 3, "a", 80),
        _record(2024, 1, "b", None),
    ]

    table = HistoryPivot(rng=FixedRng(0.5)).pivot(records)

    assert table.to_rows() == [
        ["Date", "a", "b"],
        ["2024-01", 120, ""],
        ["2024-03", 80, ""],
    ]


def test_unreported_term_has_no_column() -> None:
    table = HistoryPivot(rng=ExplodingRng()).pivot([_record(2024, 1, "a", 1), _record(2024, 3, "a", 2)])

    assert table.header == ["Date", "a"]
    assert len(table.rows) == 2


def test_filled_cells_stay_within_decay_bound() -> None:
    rng = np.random.default_rng(1234)
    source = np.random.default_rng(99)
    records = []
    original = {}
    for month in range(1, 13):
        for term in ("a", "b", "c"):
            if source.random() < 0.4:
                volume = int(source.integers(0, 200000))
                records.append(_record(2023, month, term, volume))
                original[(f"2023-{month:02d}", term)] = volume
    records.append(_record(2023, 1, "d", 5))
    records.append(_record(2023, 12, "d", 5))

    table = HistoryPivot(rng=rng).pivot(records)

    for row in table.rows:
        for term, cell in zip(table.header[1:], row[1:]):
            if (row[0], term) in original:
                assert cell == original[(row[0], term)]
            elif cell != "":
                assert isinstance(cell, int)
                assert 0 <= cell <= round_half_up(1000 * 0.9)


def test_seeded_generator_is_reproducible() -> None:
    records = [_record(2024, 1, "a", 500), _record(2024, 6, "b", 1), _record(2024, 9, "b", 1)]

    first = HistoryPivot(rng=np.random.default_rng(7)).pivot(records)
    second = HistoryPivot(rng=np.random.default_rng(7)).pivot(records)

    assert first == second


def test_empty_history_is_the_no_data_sentinel() -> None:
    assert HistoryPivot().pivot([]).to_rows() == [["NO DATA"]]


def test_record_without_period_fails_loudly() -> None:
    with pytest.raises(SchemaMismatchError):
        HistoryPivot().pivot([{"search_term": "a", "search_volume_estimate": 1}])


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(0.49) == 0


def test_negative_volume_is_rejected() -> None:
    records = [_record(2024, 1, "a", -40), _record(2024, 2, "b", 1)]

    with pytest.raises(SchemaMismatchError, match="negative"):
        HistoryPivot(rng=ExplodingRng()).pivot(records)
