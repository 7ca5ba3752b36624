"""Unit tests for provider response normalization."""

import json

import pytest

from online.backend.core.errors import SchemaMismatchError
from online.backend.engine.models import Intent, Table
from online.backend.engine.result_normalizer import normalize, unwrap_records

LIKE_TERMS = [
    {"search_term": "wireless headphones", "search_volume": 120000, "rank": 1},
    {"search_term": "bluetooth headphones", "search_volume": 90000, "rank": 2},
]


def test_header_follows_first_record_field_order() -> None:
    table = normalize(Intent.PHRASE_MATCH, LIKE_TERMS)

    assert table.header == ["search_term", "search_volume", "rank"]
    assert table.rows == [
        ["wireless headphones", 120000, 1],
        ["bluetooth headphones", 90000, 2],
    ]


def test_exact_match_overview_wrapper_is_unwrapped() -> None:
    response = {"overview": LIKE_TERMS, "asins": [{"asin": "B01"}]}

    table = normalize(Intent.EXACT_MATCH, response)

    assert len(table) == 2
    assert table.header[0] == "search_term"


def test_overview_is_only_unwrapped_for_exact_match() -> None:
    assert unwrap_records(Intent.PHRASE_MATCH, {"overview": []}) == {"overview": []}


@pytest.mark.parametrize("response", [[], None, {"overview": []}])
def test_empty_response_is_the_no_data_sentinel(response) -> None:
    table = normalize(Intent.EXACT_MATCH, response)

    assert table.is_empty
    assert table.to_rows() == [["NO DATA"]]


def test_records_with_a_different_field_set_fail_loudly() -> None:
    records = LIKE_TERMS + [{"search_term": "earbuds", "search_volume": 5}]

    with pytest.raises(SchemaMismatchError, match="Record 2"):
        normalize(Intent.PHRASE_MATCH, records)


def test_same_fields_in_another_order_stay_aligned() -> None:
    records = [
        {"search_term": "a", "search_volume": 1},
        {"search_volume": 2, "search_term": "b"},
    ]

    table = normalize(Intent.PHRASE_MATCH, records)

    assert table.rows == [["a", 1], ["b", 2]]


def test_null_values_become_blank_cells() -> None:
    table = normalize(Intent.ASIN_LOOKUP, [{"search_term": "a", "search_volume": None}])

    assert table.rows == [["a", ""]]


def test_object_response_for_array_endpoint_is_rejected() -> None:
    with pytest.raises(SchemaMismatchError):
        normalize(Intent.PHRASE_MATCH, {"error": "unexpected"})


def test_normalization_is_deterministic_on_the_wire() -> None:
    first = json.dumps(normalize(Intent.PHRASE_MATCH, LIKE_TERMS).to_rows())
    second = json.dumps(normalize(Intent.PHRASE_MATCH, LIKE_TERMS).to_rows())

    assert first == second


def test_wire_form_round_trips_with_cell_types() -> None:
    table = normalize(Intent.PHRASE_MATCH, LIKE_TERMS)

    restored = Table.from_rows(json.loads(json.dumps(table.to_rows())))

    assert restored == table
    assert isinstance(restored.rows[0][1], int)
    assert Table.from_rows([["NO DATA"]]).is_empty


def test_table_rejects_ragged_rows() -> None:
    with pytest.raises(SchemaMismatchError):
        Table(header=["a", "b"], rows=[["only one"]])
