"""
Payment specific codes.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Provider errors (6xxxx)
    PROVIDER_UNAVAILABLE = 60001  # breaker open, timeout or transient failures exhausted
    PROVIDER_DECLINED = 60002

    # Payment state errors (61xxx)
    DOUBLE_PAYMENT = 61000
