from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from wolf_marketer.db.enums import PaymentMethodTypeEnum, WithdrawalStatusEnum


class WithdrawalCreateRequest(BaseModel):
    userId: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    paymentMethod: PaymentMethodTypeEnum
    accountDetails: str | None = None


class WithdrawalCancelRequest(BaseModel):
    userId: int


class WithdrawalResponse(BaseModel):
    id: int
    userId: int
    amount: str
    platformFee: str
    netAmount: str
    paymentMethod: PaymentMethodTypeEnum
    accountDetails: str | None = None
    status: WithdrawalStatusEnum
    transactionId: str | None = None
    notes: str | None = None
    requestedAt: datetime
    processedAt: datetime | None = None


class PaymentMethodCreateRequest(BaseModel):
    userId: int
    type: PaymentMethodTypeEnum
    accountName: str = Field(min_length=1, max_length=200)
    accountDetails: str = Field(min_length=1)
    isDefault: bool = False


class PaymentMethodUpdateRequest(BaseModel):
    userId: int
    type: PaymentMethodTypeEnum | None = None
    accountName: str | None = Field(default=None, min_length=1, max_length=200)
    accountDetails: str | None = Field(default=None, min_length=1)
    isDefault: bool | None = None


class PaymentMethodResponse(BaseModel):
    id: int
    userId: int
    type: PaymentMethodTypeEnum
    accountName: str
    accountDetails: str
    isDefault: bool
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class EarningsBreakdownItem(BaseModel):
    platform: str
    amount: str
    percentage: int


class FinancialsResponse(BaseModel):
    balance: str
    pendingEarnings: str
    totalEarnings: str
    totalCommissions: str
    platformFees: str
    earningsBreakdown: list[EarningsBreakdownItem]
