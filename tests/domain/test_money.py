from decimal import Decimal

import pytest

from domain.common.exceptions import CurrencyMismatchException, InvalidAmountException
from domain.common.money import Money


def test_parse_keeps_exact_decimal_and_upper_currency():
    m = Money.parse("19.99", "usd")
    assert m.amount == Decimal("19.99")
    assert m.currency == "USD"
    assert str(m) == "19.99 USD"
    assert m.to_store_format() == "19.99"


@pytest.mark.parametrize("raw", ["", "   ", "abc", "1,00", "NaN", "Infinity", None])
def test_parse_rejects_malformed_amounts(raw):
    with pytest.raises(InvalidAmountException):
        Money.parse(raw, "USD")


def test_of_accepts_int_str_decimal_but_not_float():
    assert Money.of(5, "EUR").amount == Decimal("5")
    assert Money.of("2.50", "EUR").amount == Decimal("2.50")
    assert Money.of(Decimal("1.1"), "EUR").amount == Decimal("1.1")
    with pytest.raises(InvalidAmountException):
        Money.of(1.5, "EUR")  # type: ignore[arg-type]


def test_addition_requires_same_currency():
    total = Money.parse("10.00", "USD") + Money.parse("2.50", "USD")
    assert total == Money.parse("12.50", "USD")

    with pytest.raises(CurrencyMismatchException):
        Money.parse("10.00", "USD") + Money.parse("1.00", "EUR")
    with pytest.raises(CurrencyMismatchException):
        Money.parse("10.00", "USD") - Money.parse("1.00", "EUR")


def test_multiply_and_predicates():
    m = Money.parse("3.33", "USD") * 3
    assert m.amount == Decimal("9.99")
    assert m.is_positive()
    assert Money.zero("USD").is_zero()
    assert not Money.zero("USD").is_positive()
    with pytest.raises(TypeError):
        Money.parse("1", "USD") * 1.5  # type: ignore[operator]
