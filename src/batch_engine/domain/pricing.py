"""Batch pricing engine.

Price of a project is always derived from three inputs: the base price of a
single video, the number of videos and the delivery mode. Nothing here is
cached; callers recompute whenever any input changes.

Formula:
    subtotal    = base_price * quantity * (1 - discount / 100)
    urgency_fee = subtotal * (multiplier - 1)    (simultaneous batches only)
    total       = subtotal + urgency_fee
    platform    = total * platform_fee_percent / 100
    editor      = total - platform

The discount is taken from the highest tier whose minimum quantity is met.
"""

import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from batch_engine.config import Settings
from batch_engine.domain.enums import DeliveryMode
from batch_engine.domain.errors import InvalidBatchConfigurationError
from batch_engine.domain.models import BatchPricing

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Simultaneous delivery compresses the schedule to one and a half video slots
SIMULTANEOUS_DEADLINE_FACTOR = 1.5


class DiscountTier(BaseModel):
    """Discount applied once a batch reaches `min_quantity` videos."""

    model_config = ConfigDict(frozen=True)

    min_quantity: int = Field(..., ge=1)
    discount_percent: Decimal = Field(..., ge=0, le=100)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PricingConfig(BaseModel):
    """Platform pricing terms, passed explicitly into every calculation."""

    model_config = ConfigDict(frozen=True)

    discount_tiers: tuple[DiscountTier, ...] = (
        DiscountTier(min_quantity=4, discount_percent=Decimal("5")),
        DiscountTier(min_quantity=7, discount_percent=Decimal("8")),
        DiscountTier(min_quantity=10, discount_percent=Decimal("10")),
    )
    platform_fee_percent: Decimal = Field(default=Decimal("15"), ge=0, le=100)
    simultaneous_multiplier: Decimal = Field(default=Decimal("1.2"), ge=1)
    min_batch_quantity: int = Field(default=4, ge=1)
    max_batch_quantity: int = Field(default=20, ge=1)
    free_revisions_limit: int = Field(default=2, ge=0)
    extra_revision_fee_percent: Decimal = Field(default=Decimal("20"), ge=0)

    @field_validator("discount_tiers", mode="before")
    @classmethod
    def _parse_tiers(cls, value: Any) -> Any:
        """Accept the stored `{"4": 5, "7": 8}` map as well as a tier list."""
        if isinstance(value, Mapping):
            value = [
                {"min_quantity": int(qty), "discount_percent": _to_decimal(pct)}
                for qty, pct in value.items()
            ]
        return value

    @field_validator("discount_tiers")
    @classmethod
    def _sort_tiers(cls, value: tuple[DiscountTier, ...]) -> tuple[DiscountTier, ...]:
        return tuple(sorted(value, key=lambda tier: tier.min_quantity))

    @field_validator(
        "platform_fee_percent",
        "simultaneous_multiplier",
        "extra_revision_fee_percent",
        mode="before",
    )
    @classmethod
    def _parse_decimal(cls, value: Any) -> Decimal:
        return _to_decimal(value)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingConfig":
        """Build the pricing terms from application settings."""
        return cls(
            discount_tiers=settings.batch_discount_tiers,
            platform_fee_percent=settings.platform_fee_percent,
            simultaneous_multiplier=settings.simultaneous_delivery_multiplier,
            min_batch_quantity=settings.min_batch_quantity,
            max_batch_quantity=settings.max_batch_quantity,
            free_revisions_limit=settings.free_revisions_limit,
            extra_revision_fee_percent=settings.extra_revision_fee_percent,
        )


DEFAULT_PRICING_CONFIG = PricingConfig()


def _money(value: Decimal) -> Decimal:
    """Round to cents, never below zero."""
    return max(value, ZERO).quantize(CENTS, rounding=ROUND_HALF_UP)


def discount_for_quantity(quantity: int, config: PricingConfig = DEFAULT_PRICING_CONFIG) -> Decimal:
    """Discount percent of the highest tier reached by `quantity`."""
    if quantity <= 1:
        return ZERO
    discount = ZERO
    for tier in config.discount_tiers:
        if tier.min_quantity <= quantity:
            discount = tier.discount_percent
    return discount


def calculate_batch_pricing(
    base_price: Decimal | int | float | str,
    quantity: int,
    delivery_mode: DeliveryMode | str,
    config: PricingConfig | None = None,
) -> BatchPricing:
    """Compute the full price breakdown of a project.

    The function is total: out-of-policy quantities still produce a
    consistent result. Policy checks belong to `validate_batch_configuration`.

    Args:
        base_price: Price of a single video.
        quantity: Number of videos.
        delivery_mode: Sequential or simultaneous delivery.
        config: Pricing terms. Platform defaults when omitted.

    Returns:
        The derived BatchPricing.
    """
    config = config or DEFAULT_PRICING_CONFIG
    base = _to_decimal(base_price)
    count = max(quantity, 0)
    mode = DeliveryMode.parse(delivery_mode)

    discount_percent = discount_for_quantity(count, config)
    subtotal_before_discount = base * count
    discount_amount = subtotal_before_discount * discount_percent / HUNDRED
    subtotal = subtotal_before_discount - discount_amount

    if mode == DeliveryMode.SIMULTANEOUS and count > 1:
        urgency_fee = subtotal * (config.simultaneous_multiplier - 1)
    else:
        urgency_fee = ZERO

    total = _money(subtotal + urgency_fee)
    platform_fee = _money(total * config.platform_fee_percent / HUNDRED)
    editor_earnings_total = total - platform_fee

    if count > 0:
        price_per_video = _money(total / count)
        editor_earnings_per_video = _money(editor_earnings_total / count)
    else:
        price_per_video = ZERO.quantize(CENTS)
        editor_earnings_per_video = ZERO.quantize(CENTS)

    return BatchPricing(
        base_price=_money(base),
        quantity=count,
        delivery_mode=mode,
        discount_percent=discount_percent,
        subtotal_before_discount=_money(subtotal_before_discount),
        subtotal=_money(subtotal),
        urgency_fee=_money(urgency_fee),
        total=total,
        platform_fee=platform_fee,
        editor_earnings_total=_money(editor_earnings_total),
        editor_earnings_per_video=editor_earnings_per_video,
        price_per_video=price_per_video,
        savings=_money(subtotal_before_discount - subtotal),
    )


def validate_batch_configuration(
    base_price: Decimal | int | float | str,
    quantity: int,
    delivery_mode: DeliveryMode | str,
    config: PricingConfig | None = None,
    is_batch: bool = True,
) -> DeliveryMode:
    """Check a requested configuration against platform policy.

    Returns:
        The parsed delivery mode.

    Raises:
        InvalidBatchConfigurationError: If any input is out of policy.
    """
    config = config or DEFAULT_PRICING_CONFIG

    try:
        price = _to_decimal(base_price)
    except ArithmeticError as e:
        raise InvalidBatchConfigurationError(f"Invalid base price: {base_price!r}") from e
    if not price.is_finite() or price <= 0:
        raise InvalidBatchConfigurationError("Base price must be greater than zero")

    try:
        mode = DeliveryMode(delivery_mode)
    except ValueError as e:
        raise InvalidBatchConfigurationError(f"Unknown delivery mode: {delivery_mode!r}") from e

    if not is_batch:
        if quantity != 1:
            raise InvalidBatchConfigurationError("A single-video project holds exactly one video")
        return mode

    if not config.min_batch_quantity <= quantity <= config.max_batch_quantity:
        raise InvalidBatchConfigurationError(
            f"Batch quantity must be between {config.min_batch_quantity} "
            f"and {config.max_batch_quantity}, got {quantity}"
        )
    return mode


def estimate_delivery_days(base_days: int, quantity: int, delivery_mode: DeliveryMode | str) -> int:
    """Estimate how many days a project takes to deliver in full."""
    if quantity <= 1:
        return base_days
    if DeliveryMode.parse(delivery_mode) == DeliveryMode.SIMULTANEOUS:
        return math.ceil(base_days * SIMULTANEOUS_DEADLINE_FACTOR)
    return base_days * quantity


def free_revisions_remaining(revision_count: int, config: PricingConfig = DEFAULT_PRICING_CONFIG) -> int:
    """Number of revision rounds still included in the price."""
    return max(0, config.free_revisions_limit - revision_count)


def needs_payment_for_revision(
    revision_count: int,
    has_paid_extra_revisions: bool,
    config: PricingConfig = DEFAULT_PRICING_CONFIG,
) -> bool:
    """Whether requesting another revision must be paid for first."""
    return revision_count >= config.free_revisions_limit and not has_paid_extra_revisions


def extra_revision_cost(
    editor_earnings_per_video: Decimal | int | float | str,
    config: PricingConfig = DEFAULT_PRICING_CONFIG,
) -> Decimal:
    """Price of one extra revision round for a video."""
    earnings = _to_decimal(editor_earnings_per_video)
    return _money(earnings * config.extra_revision_fee_percent / HUNDRED)
