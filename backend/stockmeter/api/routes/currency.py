"""Currency Routes — exchange rates and conversion."""

from fastapi import APIRouter, Depends

from stockmeter.api.dependencies import get_currency_service
from stockmeter.schemas.currency import ConvertRequest
from stockmeter.services.currency_service import CurrencyService

router = APIRouter(prefix="/api/v1/currency", tags=["currency"])


@router.get("/rates")
async def exchange_rates(currency: CurrencyService = Depends(get_currency_service)):
    return await currency.get_exchange_rates()


@router.post("/convert")
async def convert(
    body: ConvertRequest,
    currency: CurrencyService = Depends(get_currency_service),
):
    converted = await currency.convert_currency(
        body.amount, body.from_currency, body.to_currency,
    )
    return {
        "amount": body.amount,
        "from": body.from_currency,
        "to": body.to_currency,
        "converted_amount": converted,
        "formatted": currency.format_currency(converted, body.to_currency),
    }
