"""API route modules."""

from batch_engine.api.routes import batches, health, pricing, projects

__all__ = ["batches", "health", "pricing", "projects"]
