"""
预订引擎异常定义

每种校验失败对应一个独立的异常类型，HTTP 层根据 status_code 映射响应码。
"""


class ReservationError(Exception):
    """预订引擎异常基类"""

    status_code = 400
    default_message = "Reservation operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class InvalidDateRange(ReservationError):
    """日期区间非法：无法解析，或离店时间不晚于入住时间"""

    default_message = "Invalid date range: check-out must be after check-in"


class InvalidGuestCount(ReservationError):
    default_message = "Guest count must be at least 1"


class ResourceUnavailable(ReservationError):
    """请求区间内资源已被占用"""

    status_code = 409
    default_message = "Resource is not available for the requested dates"


class NotFound(ReservationError):
    status_code = 404
    default_message = "Reservation not found"


class InvalidStatusForModification(ReservationError):
    default_message = "Cannot modify reservation in current status"


class InvalidTransition(ReservationError):
    """状态转换不被允许，消息说明所需的前置状态"""

    default_message = "Invalid status transition"


class AlreadyPaid(ReservationError):
    default_message = "Deposit already paid"


class NoDepositRequired(ReservationError):
    default_message = "No deposit required for this reservation"


class NothingToRefund(ReservationError):
    default_message = "No deposit to refund"


class ConfirmationCodeExhausted(ReservationError):
    """多次重试后仍无法生成唯一确认码"""

    status_code = 503
    default_message = "Could not generate a unique confirmation code"


__all__ = [
    "ReservationError",
    "InvalidDateRange",
    "InvalidGuestCount",
    "ResourceUnavailable",
    "NotFound",
    "InvalidStatusForModification",
    "InvalidTransition",
    "AlreadyPaid",
    "NoDepositRequired",
    "NothingToRefund",
    "ConfirmationCodeExhausted",
]
