"""
Money value object.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from domain.common.result import Error, Result


@dataclass(frozen=True)
class Money:
    """Validated amount + ISO-4217 currency. Equality by (amount, currency)."""

    amount: Decimal
    currency: str

    @classmethod
    def create(cls, amount: Any, currency: str | None) -> Result["Money"]:
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError, TypeError):
            return Result.fail(Error.validation("Money.Amount.Invalid", "Amount must be a decimal number"))
        if not value.is_finite() or value <= 0:
            return Result.fail(Error.validation("Money.Amount.Invalid", "Amount must be greater than zero"))

        if currency is None or not currency.strip():
            return Result.fail(Error.validation("Money.Currency.Empty", "Currency cannot be empty"))

        code = currency.strip().upper()
        if len(code) != 3 or not code.isalpha() or not code.isascii():
            return Result.fail(
                Error.validation(
                    "Money.Currency.Invalid",
                    "Currency must be a 3-letter ISO 4217 code (e.g. USD, EUR)",
                )
            )

        return Result.ok(cls(value, code))

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
