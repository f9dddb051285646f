from .schemas.pricing import ComputeItem, ComputeRequest, ComputeResult
from .services.pricing import PricingEngine, compute_prices

__all__ = ["ComputeItem", "ComputeRequest", "ComputeResult", "PricingEngine", "compute_prices"]
