"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode

from .result import Error, ErrorType


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


_ERROR_TYPE_CODES = {
    ErrorType.VALIDATION: BusinessCode.PARAM_ERROR,
    ErrorType.NOT_FOUND: BusinessCode.NOT_FOUND,
    ErrorType.CONFLICT: BusinessCode.CONFLICT,
    ErrorType.UNAUTHORIZED: BusinessCode.UNAUTHORIZED,
    ErrorType.FORBIDDEN: BusinessCode.FORBIDDEN,
    ErrorType.FAILURE: BusinessCode.OPERATION_FAILED,
    ErrorType.SERVICE_UNAVAILABLE: BusinessCode.SERVICE_UNAVAILABLE,
}

# 个别错误码使用更具体的业务码
_ERROR_CODE_OVERRIDES = {
    "Idempotency.Conflict": BusinessCode.IDEMPOTENCY_CONFLICT,
    "Provider.Unavailable": PaymentCode.PROVIDER_UNAVAILABLE,
    "Provider.Declined": PaymentCode.PROVIDER_DECLINED,
    "Payment.AlreadyConfirmed": PaymentCode.DOUBLE_PAYMENT,
    "Payment.DoublePayment": PaymentCode.DOUBLE_PAYMENT,
}


class ResultErrorException(BusinessException):
    """把失败的 Result 包装成业务异常，交由全局异常处理器渲染"""

    def __init__(self, error: Error) -> None:
        code = _ERROR_CODE_OVERRIDES.get(error.code) or _ERROR_TYPE_CODES.get(error.type, BusinessCode.SYSTEM_ERROR)
        super().__init__(
            code=int(code),
            message=error.message,
            error_type=error.code,
            details={"type": error.type.value},
        )
        self.error = error


class DuplicateSuccessfulPaymentError(Exception):
    """A second successful payment for the same order hit the unique index."""

    def __init__(self, order_id: Optional[str] = None) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} already has a successful payment")


class IdempotencyKeyExistsError(Exception):
    """Another request stored the same (user_id, key) first."""

    def __init__(self, user_id: Optional[str] = None, key: Optional[str] = None) -> None:
        self.user_id = user_id
        self.key = key
        super().__init__(f"Idempotency key {key!r} already stored for user {user_id}")
