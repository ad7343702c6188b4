from fastapi import APIRouter, Depends, Response, status

from wolf_marketer.db.models import PaymentMethod, Withdrawal
from wolf_marketer.schemas.payments import (
    FinancialsResponse,
    PaymentMethodCreateRequest,
    PaymentMethodResponse,
    PaymentMethodUpdateRequest,
    WithdrawalCancelRequest,
    WithdrawalCreateRequest,
    WithdrawalResponse,
)
from wolf_marketer.services import payments as payment_service
from wolf_marketer.services.money import format_money
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/payments", tags=["payments"])

_METHOD_FIELDS = {
    "type": "type",
    "accountName": "account_name",
    "accountDetails": "account_details",
    "isDefault": "is_default",
}


def _serialize_withdrawal(withdrawal: Withdrawal) -> WithdrawalResponse:
    return WithdrawalResponse(
        id=withdrawal.id,
        userId=withdrawal.user_id,
        amount=format_money(withdrawal.amount),
        platformFee=format_money(withdrawal.platform_fee),
        netAmount=format_money(withdrawal.net_amount),
        paymentMethod=withdrawal.payment_method,
        accountDetails=withdrawal.account_details,
        status=withdrawal.status,
        transactionId=withdrawal.transaction_id,
        notes=withdrawal.notes,
        requestedAt=withdrawal.requested_at,
        processedAt=withdrawal.processed_at,
    )


def _serialize_payment_method(method: PaymentMethod) -> PaymentMethodResponse:
    return PaymentMethodResponse(
        id=method.id,
        userId=method.user_id,
        type=method.type,
        accountName=method.account_name,
        accountDetails=method.account_details,
        isDefault=method.is_default,
        createdAt=method.created_at,
        updatedAt=method.updated_at,
    )


@router.get("/financials", response_model=FinancialsResponse)
def get_financials(userId: int, storage: Storage = Depends(get_storage)):
    return payment_service.get_financials(storage, userId)


@router.get("/withdrawals", response_model=list[WithdrawalResponse])
def list_withdrawals(userId: int, storage: Storage = Depends(get_storage)):
    return [_serialize_withdrawal(withdrawal) for withdrawal in payment_service.list_withdrawals(storage, userId)]


@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
def request_withdrawal(payload: WithdrawalCreateRequest, storage: Storage = Depends(get_storage)):
    withdrawal = payment_service.request_withdrawal(
        storage,
        user_id=payload.userId,
        amount=payload.amount,
        payment_method=payload.paymentMethod,
        account_details=payload.accountDetails,
    )
    return _serialize_withdrawal(withdrawal)


@router.post("/withdrawals/{withdrawal_id}/cancel", response_model=WithdrawalResponse)
def cancel_withdrawal(
    withdrawal_id: int,
    payload: WithdrawalCancelRequest,
    storage: Storage = Depends(get_storage),
):
    withdrawal = payment_service.cancel_withdrawal(storage, user_id=payload.userId, withdrawal_id=withdrawal_id)
    return _serialize_withdrawal(withdrawal)


@router.get("/methods", response_model=list[PaymentMethodResponse])
def list_payment_methods(userId: int, storage: Storage = Depends(get_storage)):
    return [_serialize_payment_method(method) for method in payment_service.list_payment_methods(storage, userId)]


@router.post("/methods", response_model=PaymentMethodResponse, status_code=status.HTTP_201_CREATED)
def create_payment_method(payload: PaymentMethodCreateRequest, storage: Storage = Depends(get_storage)):
    method = payment_service.create_payment_method(
        storage,
        user_id=payload.userId,
        type=payload.type,
        account_name=payload.accountName,
        account_details=payload.accountDetails,
        is_default=payload.isDefault,
    )
    return _serialize_payment_method(method)


@router.patch("/methods/{payment_method_id}", response_model=PaymentMethodResponse)
def update_payment_method(
    payment_method_id: int,
    payload: PaymentMethodUpdateRequest,
    storage: Storage = Depends(get_storage),
):
    data = payload.model_dump(exclude_unset=True, exclude={"userId"})
    fields = {_METHOD_FIELDS[key]: value for key, value in data.items()}
    method = payment_service.update_payment_method(
        storage, user_id=payload.userId, payment_method_id=payment_method_id, **fields
    )
    return _serialize_payment_method(method)


@router.delete("/methods/{payment_method_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_method(payment_method_id: int, userId: int, storage: Storage = Depends(get_storage)):
    payment_service.delete_payment_method(storage, user_id=userId, payment_method_id=payment_method_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
