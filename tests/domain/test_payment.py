import json
import uuid
from decimal import Decimal

import pytest

from domain.common.entity import utcnow
from domain.outbox.entity import OutboxMessage
from domain.payment.entity import Payment, PaymentStatus
from domain.payment.events import PaymentSucceeded


@pytest.fixture
def payment() -> Payment:
    return Payment.create(uuid.uuid4(), uuid.uuid4(), Decimal("12.34"), "EUR").value


def test_create_payment_is_pending(payment):
    assert payment.status is PaymentStatus.PENDING
    assert payment.provider_ref is None
    assert not payment.is_final_status()


@pytest.mark.parametrize(
    "order_id,user_id,code",
    [
        (None, uuid.uuid4(), "Payment.OrderId.Empty"),
        (uuid.UUID(int=0), uuid.uuid4(), "Payment.OrderId.Empty"),
        (uuid.uuid4(), None, "Payment.UserId.Empty"),
    ],
)
def test_create_payment_rejects_empty_ids(order_id, user_id, code):
    assert Payment.create(order_id, user_id, Decimal("1"), "USD").error.code == code


def test_mark_as_completed(payment):
    assert payment.mark_as_completed("REF-1").is_success
    assert payment.status is PaymentStatus.SUCCESSFUL
    assert payment.provider_ref == "REF-1"
    assert payment.is_final_status()

    (event,) = payment.pull_events()
    assert isinstance(event, PaymentSucceeded)
    assert event.payment_id == payment.id
    assert event.order_id == payment.order_id


def test_terminal_states_are_immutable(payment):
    payment.mark_as_failed()
    assert payment.status is PaymentStatus.FAILED
    assert payment.mark_as_completed("REF").error.code == "Payment.Status"
    assert payment.mark_as_failed().error.code == "Payment.Status"
    assert payment.domain_events == ()


def test_event_becomes_outbox_message(payment):
    payment.mark_as_completed("REF-2")
    (event,) = payment.pull_events()
    message = OutboxMessage.from_event(event)

    assert message.type == "PaymentSucceeded"
    assert message.occurred_on == event.occurred_on
    assert not message.is_processed
    body = json.loads(message.content)
    assert body["payment_id"] == str(payment.id)
    assert body["order_id"] == str(payment.order_id)


def test_outbox_message_failure_bookkeeping():
    message = OutboxMessage(type="OrderPaid", content="{}", occurred_on=utcnow())
    message.mark_failed("boom")
    message.mark_failed("boom again")
    assert message.retry_count == 2
    assert message.error == "boom again"
    message.mark_processed()
    assert message.is_processed
