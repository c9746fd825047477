"""Fee payment endpoints."""

from fastapi import APIRouter, status

from feedesk.api.dependencies import DataServiceDep, PrincipalDep, SettingsDep
from feedesk.api.models import (
    APIResponse,
    PaymentQuoteResponse,
    PaymentRequest,
    PaymentResponse,
    student_to_response,
    transaction_to_response,
)
from feedesk.payments import PaymentForm, PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/quote", response_model=APIResponse[PaymentQuoteResponse])
async def get_quote(
    service: DataServiceDep, settings: SettingsDep
) -> APIResponse[PaymentQuoteResponse]:
    """Get the fee due from the caller."""
    student = await PaymentService(service).load_payer()
    fees_paid = bool(student["fees_paid"])
    amount = 0 if fees_paid else settings.default_fee
    return APIResponse(data=PaymentQuoteResponse(amount=amount, fees_paid=fees_paid))


@router.post(
    "",
    response_model=APIResponse[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def make_payment(
    request: PaymentRequest,
    service: DataServiceDep,
    _principal: PrincipalDep,
    settings: SettingsDep,
) -> APIResponse[PaymentResponse]:
    """Pay the caller's fees by card.

    The response is sent once the simulated processor finishes.
    """
    payments = PaymentService(service, processing_delay=settings.payment_delay)
    student = await payments.load_payer()
    form = PaymentForm.from_input(
        card_number=request.card_number,
        expiry_date=request.expiry_date,
        cvv=request.cvv,
        cardholder_name=request.cardholder_name,
        amount=request.amount if request.amount is not None else settings.default_fee,
    )
    result = await payments.submit(student, form)
    return APIResponse(
        data=PaymentResponse(
            transaction=transaction_to_response(result.transaction),
            student=student_to_response(result.student),
        )
    )
