"""
Runtime settings for the marketplace.

Values come from the process environment; a local ``.env`` file is
loaded first through python-dotenv so development setups can keep their
overrides out of the shell profile.
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///optimarket.db"
    mail_from: str = "orders@optimarket.local"
    platform_fee: Decimal = Decimal("0.00")
    order_prefix: str = "COL"
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=os.environ.get("OPTIMARKET_DATABASE_URL", cls.database_url),
            mail_from=os.environ.get("OPTIMARKET_MAIL_FROM", cls.mail_from),
            platform_fee=Decimal(os.environ.get("OPTIMARKET_PLATFORM_FEE", "0.00")).quantize(Decimal("0.01")),
            order_prefix=os.environ.get("OPTIMARKET_ORDER_PREFIX", cls.order_prefix),
            debug=_env_bool("OPTIMARKET_DEBUG"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
