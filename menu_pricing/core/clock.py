from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from .config import settings

Clock = Callable[[], datetime]


def system_clock(tz: Optional[str] = None) -> datetime:
    return datetime.now(ZoneInfo(tz or settings.timezone))


def to_local(at: datetime, tz: Optional[str] = None) -> datetime:
    """Hora de pared local: un datetime con zona se convierte; uno naive ya se toma como local."""
    if at.tzinfo is None:
        return at
    return at.astimezone(ZoneInfo(tz or settings.timezone))


def fixed_clock(at: datetime) -> Clock:
    """Reloj constante (tests y recálculos deterministas)."""

    def _now() -> datetime:
        return at

    return _now
