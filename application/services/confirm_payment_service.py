"""
Payment confirmation use case.

Two phases, strictly ordered:

1. charge the provider with no transaction open, so no row lock is held
   while waiting on the network;
2. on a successful charge, finalize inside one transaction that holds the
   order lock, re-reads order and payment, re-checks every invariant and only
   then flips ``Payment -> Successful`` and ``Order -> Paid``.

Any number of concurrent confirmations for payments of the same order
serialize on the lock; at most one of them finalizes. The partial unique
index on successful payments is the backstop when the lock is absent.
"""
from __future__ import annotations

import uuid
from typing import Callable, Optional

from application.dtos.payments import PaymentDTO
from application.ports.payment_provider import ChargeRequest, ChargeResult, ChargeStatus, PaymentProviderClient
from core.logging_config import get_logger
from domain.common.exceptions import DuplicateSuccessfulPaymentError
from domain.common.result import Error, Result
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import OrderStatus
from domain.payment.entity import Payment, PaymentStatus


logger = get_logger(__name__)


def payment_not_found(payment_id: uuid.UUID) -> Error:
    return Error.not_found("Payment.NotFound", f"Payment '{payment_id}' was not found.")


ALREADY_CONFIRMED = Error.conflict(
    "Payment.AlreadyConfirmed", "Another payment for this order has already been confirmed."
)
DOUBLE_PAYMENT = Error.conflict(
    "Payment.DoublePayment", "Another payment for this order has already been confirmed."
)


class ConfirmPaymentService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        provider: PaymentProviderClient,
    ) -> None:
        self._uow_factory = uow_factory
        self._provider = provider

    async def confirm_payment(self, user_id: uuid.UUID, payment_id: uuid.UUID) -> Result[PaymentDTO]:
        payment = await self._load_owned_payment(user_id, payment_id)
        if payment is None:
            return Result.fail(payment_not_found(payment_id))

        request = ChargeRequest(
            payment_id=payment.id,
            order_id=payment.order_id,
            amount=payment.amount,
            currency=payment.currency,
        )
        logger.info("payment_charge_started", payment_id=str(payment.id), order_id=str(payment.order_id))
        charge = await self._provider.charge(request)

        if not charge.is_success:
            await self._try_mark_failed(payment.id)
            return Result.fail(self._charge_error(charge))

        try:
            return await self._finalize(payment.order_id, payment.id, charge.reference)
        except DuplicateSuccessfulPaymentError:
            logger.warning("payment_double_payment_prevented", payment_id=str(payment.id), order_id=str(payment.order_id))
            return Result.fail(DOUBLE_PAYMENT)

    async def _load_owned_payment(self, user_id: uuid.UUID, payment_id: uuid.UUID) -> Optional[Payment]:
        async with self._uow_factory(readonly=True) as uow:
            payment = await uow.payments.get(payment_id)
            if payment is None or payment.user_id != user_id:
                return None
            order = await uow.orders.get(payment.order_id)
            if order is None or order.user_id != user_id:
                return None
            return payment

    @staticmethod
    def _charge_error(charge: ChargeResult) -> Error:
        if charge.status in (ChargeStatus.UNAVAILABLE, ChargeStatus.TIMEOUT):
            return Error.service_unavailable(
                "Provider.Unavailable", charge.reason or "Payment provider is currently unavailable."
            )
        return Error.failure("Provider.Declined", charge.reason or "Payment provider declined the charge.")

    async def _try_mark_failed(self, payment_id: uuid.UUID) -> None:
        """Best effort. A payment that already left Pending is left as is."""
        try:
            async with self._uow_factory() as uow:
                payment = await uow.payments.get(payment_id)
                if payment is None or payment.status != PaymentStatus.PENDING:
                    await uow.rollback()
                    return
                payment.mark_as_failed()
                await uow.commit()
            logger.info("payment_marked_failed", payment_id=str(payment_id))
        except Exception:
            logger.warning("payment_mark_failed_error", payment_id=str(payment_id), exc_info=True)

    async def _finalize(
        self, order_id: uuid.UUID, payment_id: uuid.UUID, provider_ref: Optional[str]
    ) -> Result[PaymentDTO]:
        async with self._uow_factory() as uow:
            await uow.order_lock.acquire(order_id, uow)

            order = await uow.orders.get(order_id)
            payment = await uow.payments.get(payment_id)
            if order is None or payment is None:
                await uow.rollback()
                return Result.fail(payment_not_found(payment_id))

            if order.status != OrderStatus.CREATED:
                await uow.rollback()
                return Result.fail(Error.conflict("Order.Status", "The order has already been paid or cancelled."))
            if payment.status != PaymentStatus.PENDING:
                await uow.rollback()
                return Result.fail(Error.conflict("Payment.Status", "The payment is no longer in Pending status."))
            if await uow.payments.exists_successful_for_order(order_id):
                await uow.rollback()
                return Result.fail(ALREADY_CONFIRMED)

            completed = payment.mark_as_completed(provider_ref)
            if completed.is_failure:
                await uow.rollback()
                return Result.fail(completed.error)
            paid = order.mark_as_paid()
            if paid.is_failure:
                await uow.rollback()
                return Result.fail(paid.error)

            await uow.commit()

        logger.info("payment_confirmed", payment_id=str(payment_id), order_id=str(order_id), provider_ref=provider_ref)
        return Result.ok(PaymentDTO.from_entity(payment))
