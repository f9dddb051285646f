from sqlalchemy import JSON, Boolean, Column, Date, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import relationship

from ..db import Base


# Cuatro columnas físicas por matriz zona x servicio; se pliegan en PriceMatrix al cargar.
class PriceColumns:
    price_capital_pickup = Column(Numeric(10, 2))
    price_capital_delivery = Column(Numeric(10, 2))
    price_interior_pickup = Column(Numeric(10, 2))
    price_interior_delivery = Column(Numeric(10, 2))


class DailySpecialColumns:
    is_daily_special = Column(Boolean, default=False, nullable=False)
    daily_special_days = Column(JSON)  # lista ISO 1..7 (1=Lunes)
    daily_special_price_capital_pickup = Column(Numeric(10, 2))
    daily_special_price_capital_delivery = Column(Numeric(10, 2))
    daily_special_price_interior_pickup = Column(Numeric(10, 2))
    daily_special_price_interior_delivery = Column(Numeric(10, 2))


class WindowColumns:
    weekdays = Column(JSON)  # lista ISO 1..7; vacío/NULL = todos
    valid_from = Column(Date)
    valid_until = Column(Date)
    time_from = Column(Time)
    time_until = Column(Time)


class Category(Base):
    __tablename__ = "category"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Product(PriceColumns, DailySpecialColumns, Base):
    __tablename__ = "product"
    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("category.id"), nullable=False)
    name = Column(String(120), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    category = relationship("Category")
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")


class ProductVariant(PriceColumns, DailySpecialColumns, Base):
    __tablename__ = "product_variant"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    name = Column(String(120), nullable=False)
    sku = Column(String(50), unique=True, index=True)
    size = Column(String(30))  # '15cm' | '30cm' | ...
    is_active = Column(Boolean, default=True, nullable=False)

    product = relationship("Product", back_populates="variants")


class SectionOption(Base):
    __tablename__ = "section_option"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    price_capital_pickup = Column(Numeric(10, 2), default=0)
    price_capital_delivery = Column(Numeric(10, 2), default=0)
    price_interior_pickup = Column(Numeric(10, 2), default=0)
    price_interior_delivery = Column(Numeric(10, 2), default=0)


class Promotion(WindowColumns, Base):
    __tablename__ = "promotion"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    type = Column(String(30), nullable=False)  # 'percentage_discount' | 'two_for_one' | 'daily_special' | 'bundle_special'
    is_active = Column(Boolean, default=True, nullable=False)
    discount_percentage = Column(Numeric(5, 2))
    # precio del combinado por celda (solo bundle_special)
    special_price_capital_pickup = Column(Numeric(10, 2))
    special_price_capital_delivery = Column(Numeric(10, 2))
    special_price_interior_pickup = Column(Numeric(10, 2))
    special_price_interior_delivery = Column(Numeric(10, 2))

    items = relationship("PromotionItem", back_populates="promotion", cascade="all, delete-orphan")
    bundle_items = relationship("BundleItem", back_populates="promotion", cascade="all, delete-orphan")


class PromotionItem(WindowColumns, Base):
    __tablename__ = "promotion_item"
    id = Column(Integer, primary_key=True, index=True)
    promotion_id = Column(Integer, ForeignKey("promotion.id"), nullable=False, index=True)
    # sin FK: una referencia rota se reporta como promoción mal configurada
    product_id = Column(Integer)
    variant_id = Column(Integer)
    category_id = Column(Integer)
    discount_percentage = Column(Numeric(5, 2))

    promotion = relationship("Promotion", back_populates="items")


class BundleItem(Base):
    __tablename__ = "bundle_item"
    id = Column(Integer, primary_key=True, index=True)
    promotion_id = Column(Integer, ForeignKey("promotion.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    variant_id = Column(Integer)
    quantity = Column(Integer, default=1, nullable=False)

    promotion = relationship("Promotion", back_populates="bundle_items")
