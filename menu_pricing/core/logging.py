import logging
from typing import Optional

from .config import settings

LOGGER_ROOT = "menu_pricing"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# handler instalado por configure_logging (uno solo por proceso)
_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Instala un único StreamHandler en el logger raíz del motor (idempotente)."""
    global _handler
    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel((level or settings.log_level).upper())
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(_FORMAT))
    if _handler not in root.handlers:
        root.addHandler(_handler)
    return root


def installed_handler() -> Optional[logging.Handler]:
    return _handler
