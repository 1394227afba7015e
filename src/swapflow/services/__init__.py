"""Service layer exposing conversion operations to callers."""

from swapflow.services.conversion import ConversionService, QuoteSession

__all__ = ["ConversionService", "QuoteSession"]
