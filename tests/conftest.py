import pytest

from menu_pricing.core.clock import fixed_clock
from menu_pricing.services.pricing import PricingEngine

from factories import TUESDAY, make_catalog


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def engine_for():
    """PricingEngine con reloj fijo (martes 12:00 por defecto)."""

    def _engine(catalog, at=TUESDAY):
        return PricingEngine(catalog, clock=fixed_clock(at))

    return _engine
