from enum import Enum


class StudentType(str, Enum):
    DAY_SCHOLAR = "Day Scholar"
    BOARDER = "Boarder"


class GradeCategory(str, Enum):
    ZJC = "ZJC"
    O_LEVEL = "OLevel"
    A_LEVEL = "ALevel"


class UserRole(str, Enum):
    ADMIN = "admin"
    BURSAR = "bursar"
    STUDENT = "student"


class TransactionType(str, Enum):
    CASH = "cash"
    GATEWAY = "gateway"
    ADJUSTMENT = "adjustment"


class AdjustmentType(str, Enum):
    DEBIT = "debit"  # increases the term fee
    CREDIT = "credit"  # increases the term paid amount


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    PENDING_ZB_CONFIRMATION = "pending_zb_confirmation"
    PENDING_PAYMENT = "pending_payment"
    ZB_INITIATION_FAILED = "zb_initiation_failed"
    ZB_PAYMENT_SUCCESSFUL = "zb_payment_successful"
    ZB_PAYMENT_FAILED = "zb_payment_failed"
    ZB_PAYMENT_SUCCESSFUL_STUDENT_MISSING = "zb_payment_successful_student_missing"
    ZB_PAYMENT_SUCCESSFUL_TERM_ISSUE = "zb_payment_successful_term_issue"


PENDING_GATEWAY_STATUSES = frozenset(
    {
        TransactionStatus.PENDING_ZB_CONFIRMATION.value,
        TransactionStatus.PENDING_PAYMENT.value,
    }
)


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
