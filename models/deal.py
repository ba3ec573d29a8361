from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel


class DealStatus(str, Enum):
    UPCOMING = "Upcoming"
    IN_PROGRESS = "In Progress"
    AWAITING_PAYMENT = "Awaiting Payment"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class Deal(BaseModel):
    id: str
    user_id: str
    brand_name: str
    campaign_name: str
    status: DealStatus
    deliverables: str = ""
    # Raw stored value, never coerced; parse_due_date() is the only validator
    due_date: Any = None
    payment: float = 0.0
    paid: bool = False


@dataclass(frozen=True)
class InvalidDueDate:
    raw: Any
    reason: str


def parse_due_date(value: Any) -> Union[date, InvalidDueDate]:
    """
    Normalizes a stored due date to a date-only value in UTC.

    Naive datetimes are treated as UTC. Strings must be ISO 8601, either
    date-only or date+time with a 'Z' suffix or an explicit offset.
    """
    if value is None:
        return InvalidDueDate(value, "missing")

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(timezone.utc).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return InvalidDueDate(value, "empty string")
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return InvalidDueDate(value, "not an ISO 8601 timestamp")
        return parse_due_date(parsed)

    return InvalidDueDate(value, f"unsupported type {type(value).__name__}")


def utc_today(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(timezone.utc).date()
