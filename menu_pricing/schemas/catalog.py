"""
Tipos del catálogo (solo lectura para el motor).

El catálogo llega como una instantánea inmutable: productos, variantes, categorías,
opciones de sección y promociones. Los cuatro precios por zona x tipo de servicio se
modelan como una `PriceMatrix` indexada por `PriceKind` en lugar de cuatro campos sueltos.
"""
from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.money import to_decimal


class Zone(str, Enum):
    CAPITAL = "capital"
    INTERIOR = "interior"


class ServiceType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class PriceKind(str, Enum):
    CAPITAL_PICKUP = "capital_pickup"
    CAPITAL_DELIVERY = "capital_delivery"
    INTERIOR_PICKUP = "interior_pickup"
    INTERIOR_DELIVERY = "interior_delivery"

    @classmethod
    def for_context(cls, zone: Zone, service_type: ServiceType) -> "PriceKind":
        return _PRICE_KINDS[(Zone(zone), ServiceType(service_type))]


_PRICE_KINDS: Dict[Tuple[Zone, ServiceType], PriceKind] = {
    (Zone.CAPITAL, ServiceType.PICKUP): PriceKind.CAPITAL_PICKUP,
    (Zone.CAPITAL, ServiceType.DELIVERY): PriceKind.CAPITAL_DELIVERY,
    (Zone.INTERIOR, ServiceType.PICKUP): PriceKind.INTERIOR_PICKUP,
    (Zone.INTERIOR, ServiceType.DELIVERY): PriceKind.INTERIOR_DELIVERY,
}


class PromotionType(str, Enum):
    PERCENTAGE_DISCOUNT = "percentage_discount"
    TWO_FOR_ONE = "two_for_one"
    DAILY_SPECIAL = "daily_special"
    BUNDLE_SPECIAL = "bundle_special"


class PriceMatrix(BaseModel):
    """Precio por celda zona x servicio. Celda ausente = sin precio configurado."""

    model_config = ConfigDict(frozen=True)

    cells: Dict[PriceKind, Decimal] = Field(default_factory=dict)

    @field_validator("cells", mode="before")
    @classmethod
    def _drop_empty(cls, v):
        if v is None:
            return {}
        return {k: to_decimal(p) for k, p in dict(v).items() if p is not None}

    @classmethod
    def from_columns(
        cls,
        capital_pickup=None,
        capital_delivery=None,
        interior_pickup=None,
        interior_delivery=None,
    ) -> "PriceMatrix":
        return cls(cells={
            PriceKind.CAPITAL_PICKUP: capital_pickup,
            PriceKind.CAPITAL_DELIVERY: capital_delivery,
            PriceKind.INTERIOR_PICKUP: interior_pickup,
            PriceKind.INTERIOR_DELIVERY: interior_delivery,
        })

    @classmethod
    def flat(cls, price) -> "PriceMatrix":
        return cls(cells={k: price for k in PriceKind})

    def get(self, kind: PriceKind) -> Optional[Decimal]:
        return self.cells.get(PriceKind(kind))

    def __bool__(self) -> bool:
        return bool(self.cells)


class ActivityWindow(BaseModel):
    """
    Ventana de vigencia. Cada dimensión es opcional; ausente = sin restricción.
    weekdays usa ISO-8601 (1=Lunes ... 7=Domingo). Fechas y horas son inclusivas.
    """

    model_config = ConfigDict(frozen=True)

    weekdays: FrozenSet[int] = frozenset()
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    time_from: Optional[time] = None
    time_until: Optional[time] = None

    @field_validator("weekdays", mode="before")
    @classmethod
    def _norm_weekdays(cls, v):
        if v is None:
            return frozenset()
        out = set()
        for x in v:
            d = int(x)
            if not 1 <= d <= 7:
                raise ValueError(f"weekday fuera de rango ISO (1..7): {x}")
            out.add(d)
        return frozenset(out)

    def contains(self, at: datetime) -> bool:
        if self.weekdays and at.isoweekday() not in self.weekdays:
            return False
        d = at.date()
        if self.valid_from is not None and d < self.valid_from:
            return False
        if self.valid_until is not None and d > self.valid_until:
            return False
        # se compara a resolución de segundos (HH:MM:SS)
        t = at.time().replace(microsecond=0, tzinfo=None)
        if self.time_from is not None and t < self.time_from:
            return False
        if self.time_until is not None and t > self.time_until:
            return False
        return True


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    is_active: bool = True


class SectionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price_modifiers: PriceMatrix = Field(default_factory=PriceMatrix)


class Sellable(BaseModel):
    """Campos comunes de Product y ProductVariant: precios y Sub del Día."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    is_active: bool = True
    prices: PriceMatrix = Field(default_factory=PriceMatrix)
    is_daily_special: bool = False
    daily_special_days: FrozenSet[int] = frozenset()
    daily_special_prices: PriceMatrix = Field(default_factory=PriceMatrix)

    def is_daily_special_on(self, at: datetime) -> bool:
        if not self.is_daily_special or not self.daily_special_days:
            return False
        return at.isoweekday() in self.daily_special_days


class Product(Sellable):
    category_id: int


class ProductVariant(Sellable):
    product_id: int
    sku: Optional[str] = None
    size: Optional[str] = None


class PromotionItem(BaseModel):
    """Entrada de promoción: referencia una variante, un producto o una categoría."""

    model_config = ConfigDict(frozen=True)

    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    category_id: Optional[int] = None
    discount_percentage: Optional[Decimal] = None
    window: ActivityWindow = Field(default_factory=ActivityWindow)

    def references(self, *, variant_id: Optional[int], product_id: int, category_id: Optional[int]) -> bool:
        if variant_id is not None and self.variant_id == variant_id:
            return True
        if self.product_id is not None and self.product_id == product_id:
            return True
        return category_id is not None and self.category_id == category_id


class BundleItem(BaseModel):
    """Un espacio del combinado (bundle_special)."""

    model_config = ConfigDict(frozen=True)

    id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(default=1, ge=1)

    def references(self, *, variant_id: Optional[int], product_id: int) -> bool:
        if self.product_id != product_id:
            return False
        return self.variant_id is None or self.variant_id == variant_id


class Promotion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    type: PromotionType
    is_active: bool = True
    window: ActivityWindow = Field(default_factory=ActivityWindow)
    discount_percentage: Optional[Decimal] = None
    items: Tuple[PromotionItem, ...] = ()
    bundle_items: Tuple[BundleItem, ...] = ()
    bundle_prices: PriceMatrix = Field(default_factory=PriceMatrix)

    def is_eligible(self, at: datetime) -> bool:
        return self.is_active and self.window.contains(at)


class CatalogSnapshot:
    """
    Vista de solo lectura del catálogo para una ejecución del motor.

    Las promociones se mantienen ordenadas por id descendente (la más reciente primero),
    que es el desempate documentado cuando varias aplican al mismo item.
    """

    def __init__(
        self,
        *,
        categories: Iterable[Category] = (),
        products: Iterable[Product] = (),
        variants: Iterable[ProductVariant] = (),
        options: Iterable[SectionOption] = (),
        promotions: Iterable[Promotion] = (),
    ):
        self._categories: Dict[int, Category] = {c.id: c for c in categories}
        self._products: Dict[int, Product] = {p.id: p for p in products}
        self._variants: Dict[int, ProductVariant] = {v.id: v for v in variants}
        self._options: Dict[int, SectionOption] = {o.id: o for o in options}
        self._promotions: List[Promotion] = sorted(promotions, key=lambda p: p.id, reverse=True)
        self._variants_by_product: Dict[int, List[ProductVariant]] = {}
        for v in self._variants.values():
            self._variants_by_product.setdefault(v.product_id, []).append(v)

    def category(self, category_id: Optional[int]) -> Optional[Category]:
        if category_id is None:
            return None
        return self._categories.get(category_id)

    def product(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def variant(self, variant_id: Optional[int]) -> Optional[ProductVariant]:
        if variant_id is None:
            return None
        return self._variants.get(variant_id)

    def option(self, option_id: int) -> Optional[SectionOption]:
        return self._options.get(option_id)

    def has_variants(self, product_id: int) -> bool:
        return bool(self._variants_by_product.get(product_id))

    @property
    def promotions(self) -> List[Promotion]:
        return list(self._promotions)

    def promotion(self, promotion_id: int) -> Optional[Promotion]:
        return next((p for p in self._promotions if p.id == promotion_id), None)

    def daily_special_promotion(self, at: datetime) -> Optional[Promotion]:
        return next(
            (p for p in self._promotions if p.type == PromotionType.DAILY_SPECIAL and p.is_eligible(at)),
            None,
        )
