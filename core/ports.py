"""
Read/write interfaces the reminder job depends on.

Database implements all of them; tests substitute in-memory fakes.
"""

from datetime import date
from typing import Iterable, List, Optional, Protocol

from models.deal import Deal, DealStatus
from models.mail import OutboundEmail
from models.user import UserProfile


class DealReader(Protocol):
    async def list_deals_by_status(self, statuses: Iterable[DealStatus]) -> List[Deal]:
        ...


class UserReader(Protocol):
    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        ...


class MailWriter(Protocol):
    async def add_mail(self, email: OutboundEmail) -> str:
        ...


class RunLedger(Protocol):
    async def claim_run(self, run_date: date) -> bool:
        ...
