from .catalog import BundleItem, Category, Product, ProductVariant, Promotion, PromotionItem, SectionOption

__all__ = ["BundleItem", "Category", "Product", "ProductVariant", "Promotion", "PromotionItem", "SectionOption"]
