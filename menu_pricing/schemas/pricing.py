from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.money import ZERO, money
from .catalog import PromotionType, ServiceType, Zone


class ComputeItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ref: Optional[str] = None
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(default=1, ge=1)
    selected_option_ids: List[int] = Field(default_factory=list)


class ComputeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: List[ComputeItem] = Field(default_factory=list)
    zone: Optional[Zone] = None
    service_type: Optional[ServiceType] = None
    now: Optional[datetime] = None

    @field_validator("zone", "service_type", mode="before")
    @classmethod
    def _normalize_enum(cls, v):
        if v is None:
            return v
        s = str(v.value if hasattr(v, "value") else v).strip().lower()
        return s or None

    @model_validator(mode="after")
    def _assign_refs(self):
        seen = set()
        for idx, it in enumerate(self.items):
            if not it.ref:
                it.ref = f"line-{idx}"
            if it.ref in seen:
                raise ValueError(f"ref duplicado en el carrito: {it.ref}")
            seen.add(it.ref)
        return self


class AppliedPromotion(BaseModel):
    id: Optional[int] = None
    name: str
    display_label: str
    type: PromotionType
    value: str


class DailySpecialData(BaseModel):
    """Datos del Sub del Día que TwoForOne consume para las unidades sobrantes."""

    model_config = ConfigDict(frozen=True)

    normal_unit_price: Decimal
    special_unit_price: Decimal
    discount_per_unit: Decimal
    promotion_id: Optional[int] = None


class DiscountRecord(BaseModel):
    """
    Registro transitorio por item del carrito (clave: ref del item).

    Invariante: final_price + discount_amount == original_price, siempre redondeado
    a 2 decimales al escribirse (usar `set_prices`).
    """

    item_ref: str
    discount_amount: Decimal = ZERO
    original_price: Decimal = ZERO
    final_price: Decimal = ZERO
    is_daily_special: bool = False
    applied_promotion: Optional[AppliedPromotion] = None
    daily_special: Optional[DailySpecialData] = Field(default=None, exclude=True)

    def set_prices(self, *, original, final) -> None:
        self.original_price = money(original)
        self.final_price = money(final)
        self.discount_amount = money(self.original_price - self.final_price)

    @property
    def is_discounted(self) -> bool:
        return self.applied_promotion is not None or self.is_daily_special


class PricingWarning(BaseModel):
    code: str
    message: str
    item_ref: Optional[str] = None
    promotion_id: Optional[int] = None


class UnavailableItem(BaseModel):
    item_ref: str
    product_id: int
    variant_id: Optional[int] = None
    reason: str
    message: str = ""


class ItemBreakdown(BaseModel):
    item_ref: str
    product_id: int
    variant_id: Optional[int] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    options_total: Decimal
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    is_daily_special: bool = False
    applied_promotion: Optional[AppliedPromotion] = None


class PromotionSummary(BaseModel):
    promotion_id: Optional[int] = None
    name: str
    type: PromotionType
    discount_amount: Decimal
    item_refs: List[str] = Field(default_factory=list)


class ComputeResult(BaseModel):
    items: List[ItemBreakdown] = Field(default_factory=list)
    subtotal: Decimal = ZERO
    discount_total: Decimal = ZERO
    cart_total: Decimal = ZERO
    items_count: int = 0
    promotions_applied: List[PromotionSummary] = Field(default_factory=list)
    unavailable_items: List[UnavailableItem] = Field(default_factory=list)
    warnings: List[PricingWarning] = Field(default_factory=list)
    computed_at: datetime


class CartValidation(BaseModel):
    valid: bool
    messages: List[str] = Field(default_factory=list)
