import uuid
from decimal import Decimal

from application.services.order_service import OrderService
from application.services.payment_service import PaymentService
from domain.common.result import ErrorType
from domain.order.entity import OrderStatus


async def test_create_and_get_order(store, user_id):
    orders = OrderService(store.uow_factory)
    created = await orders.create_order(user_id, Decimal("30.00"), "usd")
    assert created.is_success
    dto = created.value
    assert dto.status == "created"
    assert dto.currency == "USD"

    fetched = await orders.get_order(user_id, dto.id)
    assert fetched.value == dto
    assert store.outbox == {}


async def test_create_order_validation_error_persists_nothing(store, user_id):
    result = await OrderService(store.uow_factory).create_order(user_id, Decimal("0"), "USD")
    assert result.error.code == "Money.Amount.Invalid"
    assert result.error.type is ErrorType.VALIDATION
    assert store.orders == {}


async def test_foreign_order_looks_missing(store, user_id, other_user_id):
    orders = OrderService(store.uow_factory)
    dto = (await orders.create_order(user_id, Decimal("5"), "EUR")).value

    assert (await orders.get_order(other_user_id, dto.id)).error.code == "Order.NotFound"
    assert (await orders.cancel_order(other_user_id, dto.id)).error.type is ErrorType.NOT_FOUND
    assert (await orders.get_order(user_id, uuid.uuid4())).error.code == "Order.NotFound"


async def test_cancel_order(store, user_id):
    orders = OrderService(store.uow_factory)
    dto = (await orders.create_order(user_id, Decimal("5"), "EUR")).value

    cancelled = await orders.cancel_order(user_id, dto.id)
    assert cancelled.value.status == "cancelled"
    assert store.orders[dto.id].status is OrderStatus.CANCELLED

    again = await orders.cancel_order(user_id, dto.id)
    assert again.error.code == "Order.Status"
    assert again.error.type is ErrorType.CONFLICT


async def test_create_payment_copies_order_money(store, user_id):
    order = (await OrderService(store.uow_factory).create_order(user_id, Decimal("12.50"), "GBP")).value
    payments = PaymentService(store.uow_factory)

    result = await payments.create_payment(user_id, order.id)
    dto = result.value
    assert dto.order_id == order.id
    assert dto.amount == Decimal("12.50")
    assert dto.currency == "GBP"
    assert dto.status == "pending"
    assert dto.provider_ref is None
    assert set(store.payments) == {dto.id}


async def test_create_payment_rules(store, user_id, other_user_id):
    orders = OrderService(store.uow_factory)
    payments = PaymentService(store.uow_factory)
    order = (await orders.create_order(user_id, Decimal("1"), "USD")).value

    assert (await payments.create_payment(other_user_id, order.id)).error.code == "Order.NotFound"
    assert (await payments.create_payment(user_id, uuid.uuid4())).error.code == "Order.NotFound"

    await orders.cancel_order(user_id, order.id)
    result = await payments.create_payment(user_id, order.id)
    assert result.error.code == "Order.Status"
    assert store.payments == {}


async def test_list_payments_newest_first(store, user_id, other_user_id):
    order = (await OrderService(store.uow_factory).create_order(user_id, Decimal("1"), "USD")).value
    payments = PaymentService(store.uow_factory)
    first = (await payments.create_payment(user_id, order.id)).value
    second = (await payments.create_payment(user_id, order.id)).value

    listed = (await payments.list_payments(user_id, order.id)).value
    assert [p.id for p in listed] == [second.id, first.id]
    assert (await payments.list_payments(other_user_id, order.id)).error.code == "Order.NotFound"
