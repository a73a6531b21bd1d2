import pytest
from sqlalchemy.exc import IntegrityError

from domain.common.exceptions import DuplicateSuccessfulPaymentError, IdempotencyKeyExistsError
from infrastructure.unit_of_work import translate_integrity_error


def _integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception(message))


@pytest.mark.parametrize(
    "message, expected",
    [
        ("UNIQUE constraint failed: payments.order_id", DuplicateSuccessfulPaymentError),
        (
            'duplicate key value violates unique constraint "ux_payments_order_successful"',
            DuplicateSuccessfulPaymentError,
        ),
        (
            "UNIQUE constraint failed: idempotency_keys.user_id, idempotency_keys.key",
            IdempotencyKeyExistsError,
        ),
        (
            'duplicate key value violates unique constraint "uq_idempotency_keys_user_key"',
            IdempotencyKeyExistsError,
        ),
    ],
)
def test_unique_violations_map_to_domain_errors(message, expected):
    assert isinstance(translate_integrity_error(_integrity_error(message)), expected)


@pytest.mark.parametrize(
    "message",
    [
        "NOT NULL constraint failed: payments.order_id",
        "FOREIGN KEY constraint failed",
        "NOT NULL constraint failed: idempotency_keys.user_id",
    ],
)
def test_other_integrity_errors_are_not_translated(message):
    assert translate_integrity_error(_integrity_error(message)) is None
