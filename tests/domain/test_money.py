from decimal import Decimal

import pytest

from domain.common.money import Money
from domain.common.result import ErrorType


def test_create_normalizes_currency():
    result = Money.create(Decimal("10.50"), " usd ")
    assert result.is_success
    assert result.value == Money(Decimal("10.50"), "USD")


def test_create_accepts_numeric_strings():
    result = Money.create("19.99", "EUR")
    assert result.value.amount == Decimal("19.99")


@pytest.mark.parametrize("amount", [0, -1, "abc", "NaN", "Infinity", None])
def test_invalid_amount(amount):
    result = Money.create(amount, "USD")
    assert result.is_failure
    assert result.error.code == "Money.Amount.Invalid"
    assert result.error.type is ErrorType.VALIDATION


@pytest.mark.parametrize("currency", [None, "", "   "])
def test_empty_currency(currency):
    result = Money.create(Decimal("1"), currency)
    assert result.error.code == "Money.Currency.Empty"


@pytest.mark.parametrize("currency", ["US", "USDT", "U5D", "ÜSD"])
def test_invalid_currency(currency):
    result = Money.create(Decimal("1"), currency)
    assert result.error.code == "Money.Currency.Invalid"


def test_equality_by_value():
    assert Money(Decimal("5.00"), "USD") == Money(Decimal("5"), "USD")
    assert Money(Decimal("5"), "USD") != Money(Decimal("5"), "EUR")
