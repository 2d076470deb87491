"""Response models shared by the API routes."""

from decimal import Decimal

from pydantic import BaseModel

from batch_engine.domain.enums import DeliveryMode
from batch_engine.domain.models import BatchPricing, BatchProgress


class PricingResponse(BaseModel):
    """Price breakdown of a project."""

    base_price: Decimal
    quantity: int
    delivery_mode: DeliveryMode
    discount_percent: Decimal
    subtotal_before_discount: Decimal
    subtotal: Decimal
    urgency_fee: Decimal
    total: Decimal
    platform_fee: Decimal
    editor_earnings_total: Decimal
    editor_earnings_per_video: Decimal
    price_per_video: Decimal
    savings: Decimal

    @classmethod
    def from_pricing(cls, pricing: BatchPricing) -> "PricingResponse":
        """Build from a domain BatchPricing."""
        return cls(**pricing.to_dict())


class ProgressResponse(BaseModel):
    """Per-status tally of a batch."""

    total: int
    completed: int
    in_review: int
    in_progress: int
    revision_requested: int
    pending: int
    cancelled: int
    percentage: int
    has_delayed: bool
    delayed_count: int

    @classmethod
    def from_progress(cls, progress: BatchProgress) -> "ProgressResponse":
        """Build from a domain BatchProgress."""
        return cls(**progress.to_dict())
