"""
Display helpers shared by wallet and admin views.
"""
import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from insurfi.core.config import settings

CENTS = Decimal("0.01")


def as_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """SQLite hands timestamps back naive; they are always stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def to_money(value) -> Optional[Decimal]:
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(value, symbol: str = None) -> Optional[str]:
    if value is None:
        return None
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    return f"{symbol}{to_money(value):,.2f}"


def days_since(moment: datetime.datetime, now: datetime.datetime = None) -> int:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return (as_utc(now) - as_utc(moment)).days


def format_wallet(wallet_address: str) -> str:
    if len(wallet_address) <= 10:
        return wallet_address
    return f"{wallet_address[:6]}...{wallet_address[-4:]}"


def format_file_size(size: int) -> str:
    return f"{size / 1024:.1f} KB"
