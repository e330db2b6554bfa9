"""
Environment-driven settings.
"""

from decimal import Decimal

from optimarket.settings import Settings


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "MAIL_FROM", "PLATFORM_FEE", "ORDER_PREFIX", "DEBUG"):
        monkeypatch.delenv(f"OPTIMARKET_{name}", raising=False)

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///optimarket.db"
    assert settings.platform_fee == Decimal("0.00")
    assert settings.order_prefix == "COL"
    assert settings.debug is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPTIMARKET_DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("OPTIMARKET_MAIL_FROM", "shop@example.com")
    monkeypatch.setenv("OPTIMARKET_PLATFORM_FEE", "2.5")
    monkeypatch.setenv("OPTIMARKET_ORDER_PREFIX", "OPT")
    monkeypatch.setenv("OPTIMARKET_DEBUG", "yes")

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///:memory:"
    assert settings.mail_from == "shop@example.com"
    assert settings.platform_fee == Decimal("2.50")
    assert str(settings.platform_fee) == "2.50"
    assert settings.order_prefix == "OPT"
    assert settings.debug is True
