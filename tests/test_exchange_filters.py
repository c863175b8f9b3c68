"""Unit tests for utils.exchange_filters."""

from autotrader.utils.exchange_filters import format_size, parse_instrument_filters, round_quantity


def test_parse_instrument_filters():
    assert parse_instrument_filters({"minSz": "0.01", "lotSz": "0.001", "tickSz": "0.1"}) == (0.01, 0.001, 0.1)
    assert parse_instrument_filters(None) == (0.0, 0.000001, 0.01)
    assert parse_instrument_filters({"minSz": "", "lotSz": "bad"}) == (0.0, 0.000001, 0.01)


def test_round_quantity():
    assert round_quantity(1.23456, 0.01, 0.001) == 1.234
    assert round_quantity(0.3, 0.0, 0.1) == 0.3
    assert round_quantity(0.005, 0.01, 0.001) == 0.0
    assert round_quantity(-1.0, 0.0, 0.001) == 0.0


def test_format_size():
    assert format_size(1.234, 0.001) == "1.234"
    assert format_size(2.0, 1.0) == "2"
    assert format_size(0.5, 0.1) == "0.5"
