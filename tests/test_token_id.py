"""Unit tests for the u256 token identifier."""

import pytest

from ark_indexer.services.indexing.token_id import PADDED_TOKEN_ID_WIDTH, TokenId


def test_value_combines_halves():
    token_id = TokenId(low=1, high=1)

    assert token_id.value == 2**128 + 1


def test_from_felts_parses_hex_words():
    token_id = TokenId.from_felts("0x2a", "0x0")

    assert token_id.value == 42
    assert token_id.hex == "2a"
    assert str(token_id) == "42"


def test_from_int_round_trips_large_values():
    value = 2**200 + 12345

    assert TokenId.from_int(value).value == value


def test_padded_is_fixed_width_decimal():
    padded = TokenId(low=42, high=0).padded

    assert len(padded) == PADDED_TOKEN_ID_WIDTH
    assert padded.endswith("42")
    assert padded.lstrip("0") == "42"


def test_padded_order_matches_numeric_order():
    ids = [TokenId.from_int(v) for v in (9, 10, 2**128, 100, 2**130 + 1)]

    by_string = sorted(ids, key=lambda t: t.padded)
    by_value = sorted(ids, key=lambda t: t.value)

    assert by_string == by_value


def test_max_u256_fits_padding():
    token_id = TokenId(low=2**128 - 1, high=2**128 - 1)

    assert len(str(token_id.value)) == PADDED_TOKEN_ID_WIDTH


def test_calldata_is_low_then_high():
    assert TokenId(low=5, high=1).calldata == ["0x5", "0x1"]


@pytest.mark.parametrize("low,high", [(-1, 0), (0, 2**128), (2**128, 0)])
def test_out_of_range_halves_rejected(low, high):
    with pytest.raises(ValueError):
        TokenId(low=low, high=high)
