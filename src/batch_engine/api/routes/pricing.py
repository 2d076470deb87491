"""Pricing quote endpoints."""

from decimal import Decimal

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from batch_engine.api.deps import PricingConfigDep
from batch_engine.api.schemas import PricingResponse
from batch_engine.domain.enums import DeliveryMode
from batch_engine.domain.errors import InvalidBatchConfigurationError
from batch_engine.domain.pricing import (
    calculate_batch_pricing,
    estimate_delivery_days,
    validate_batch_configuration,
)
from batch_engine.logging import get_logger

router = APIRouter(prefix="/pricing", tags=["Pricing"])
logger = get_logger(__name__)


class QuoteRequest(BaseModel):
    """Request for a price quote."""

    base_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    quantity: int = Field(default=1, ge=1)
    delivery_mode: DeliveryMode = DeliveryMode.SEQUENTIAL
    base_delivery_days: int | None = Field(
        default=None, ge=1, description="Delivery days for a single video, to estimate the batch schedule"
    )


class QuoteResponse(PricingResponse):
    """Price quote with an optional schedule estimate."""

    estimated_delivery_days: int | None = None


@router.post(
    "/quote",
    response_model=QuoteResponse,
    summary="Quote a project",
    description="Compute the price of a single video or a batch without storing anything.",
)
async def quote(request: QuoteRequest, config: PricingConfigDep) -> QuoteResponse:
    """Price a project configuration."""
    try:
        validate_batch_configuration(
            request.base_price,
            request.quantity,
            request.delivery_mode,
            config,
            is_batch=request.quantity > 1,
        )
    except InvalidBatchConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    pricing = calculate_batch_pricing(
        request.base_price, request.quantity, request.delivery_mode, config
    )
    estimated_days = None
    if request.base_delivery_days is not None:
        estimated_days = estimate_delivery_days(
            request.base_delivery_days, request.quantity, request.delivery_mode
        )

    logger.debug("pricing_quoted", quantity=request.quantity, total=str(pricing.total))
    return QuoteResponse(**pricing.to_dict(), estimated_delivery_days=estimated_days)
