from .base import DiscountLedger, PricingContext, PromotionStrategy
from .bundle_special import BundleSpecialStrategy
from .daily_special import DailySpecialStrategy
from .percentage import PercentageDiscountStrategy
from .two_for_one import TwoForOneStrategy

__all__ = [
    "BundleSpecialStrategy",
    "DailySpecialStrategy",
    "DiscountLedger",
    "PercentageDiscountStrategy",
    "PricingContext",
    "PromotionStrategy",
    "TwoForOneStrategy",
    "default_strategies",
]


def default_strategies():
    return [
        DailySpecialStrategy(),
        PercentageDiscountStrategy(),
        TwoForOneStrategy(),
        BundleSpecialStrategy(),
    ]
