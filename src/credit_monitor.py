from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from api.base import BookingClient, CreditBalance


LOW_CREDIT_THRESHOLD = 100


@dataclass(frozen=True)
class CreditCheck:
    balance: CreditBalance
    alert: bool


def should_alert(balance: CreditBalance, threshold: int = LOW_CREDIT_THRESHOLD) -> bool:
    """Low-balance alert on usable credit only; expired credit is ignored."""
    return balance.valid < threshold


def check_credit(
    client: BookingClient,
    threshold: int = LOW_CREDIT_THRESHOLD,
    now: Optional[datetime] = None,
) -> CreditCheck:
    balance = client.credit_balance(now)
    return CreditCheck(balance=balance, alert=should_alert(balance, threshold))
