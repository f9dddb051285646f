"""
Taxonomía de errores del motor de precios.

Todos son recuperables a nivel de item o de promoción: el motor los convierte en
`unavailable_items` o `warnings` del resultado y sigue con el resto del carrito.
"""
from typing import Optional


class PricingError(Exception):
    code = "PRICING_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ConfigurationError(PricingError):
    code = "PROMOTION_MISCONFIGURED"

    def __init__(self, message: str, *, promotion_id: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.promotion_id = promotion_id


class ItemUnavailableError(PricingError):
    code = "ITEM_UNAVAILABLE"

    def __init__(self, message: str, *, reason: str, item_ref: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.item_ref = item_ref


class MissingPriceCellError(ItemUnavailableError):
    code = "MISSING_PRICE_CELL"

    def __init__(self, message: str, *, price_kind: str, item_ref: Optional[str] = None):
        super().__init__(message, reason="missing_price_cell", item_ref=item_ref)
        self.price_kind = price_kind
