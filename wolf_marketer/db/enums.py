from enum import Enum


class UserRoleEnum(str, Enum):
    user = "user"
    admin = "admin"


class PlatformStatusEnum(str, Enum):
    connected = "connected"
    error = "error"
    disconnected = "disconnected"


class PlatformHealthEnum(str, Enum):
    healthy = "healthy"
    warning = "warning"
    error = "error"


class WorkflowStatusEnum(str, Enum):
    active = "active"
    inactive = "inactive"
    error = "error"


class WorkflowStepTypeEnum(str, Enum):
    trigger = "trigger"
    filter = "filter"
    action = "action"


class TaskStatusEnum(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class ActivityTypeEnum(str, Enum):
    system = "system"
    success = "success"
    error = "error"
    warning = "warning"
    revenue = "revenue"
    payment = "payment"


class PaymentMethodTypeEnum(str, Enum):
    paypal = "paypal"
    bank = "bank"
    stripe = "stripe"


class WithdrawalStatusEnum(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class TransactionTypeEnum(str, Enum):
    commission = "commission"
    fee = "fee"
    withdrawal = "withdrawal"


class TransactionStatusEnum(str, Enum):
    pending = "pending"
    processing = "processing"
    complete = "complete"
    failed = "failed"
