"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from batch_engine.db.session import get_session
from batch_engine.domain.pricing import PricingConfig
from batch_engine.services.batches import default_pricing_config

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_pricing_config() -> PricingConfig:
    """Get the platform pricing terms."""
    return default_pricing_config()


PricingConfigDep = Annotated[PricingConfig, Depends(get_pricing_config)]
