from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from models.deal import Deal, DealStatus
from models.mail import OutboundEmail
from models.user import EmailNotificationSettings, NotificationSettings, UserProfile

TODAY = datetime(2024, 8, 12, 15, 30, tzinfo=timezone.utc)


class InMemoryDeals:
    def __init__(self, deals: List[Deal]):
        self.deals = deals
        self.queried_statuses = None

    async def list_deals_by_status(self, statuses):
        self.queried_statuses = set(statuses)
        return [d for d in self.deals if d.status in self.queried_statuses]


class InMemoryUsers:
    def __init__(self, users: List[UserProfile]):
        self.users: Dict[str, UserProfile] = {u.id: u for u in users}
        self.lookups: List[str] = []

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        self.lookups.append(user_id)
        return self.users.get(user_id)


class InMemoryMail:
    def __init__(self, failing_recipients=()):
        self.queued: List[OutboundEmail] = []
        self.failing_recipients = set(failing_recipients)

    async def add_mail(self, email: OutboundEmail) -> str:
        if self.failing_recipients.intersection(email.to):
            raise RuntimeError("mail collection unavailable")
        self.queued.append(email)
        return f"mail-{len(self.queued)}"


def make_deal(deal_id, due_date, user_id="u1", status=DealStatus.UPCOMING, campaign=None) -> Deal:
    return Deal(
        id=deal_id,
        user_id=user_id,
        brand_name="Glossier",
        campaign_name=campaign or f"Campaign {deal_id}",
        status=status,
        due_date=due_date,
        payment=1500.0,
    )


def make_user(user_id="u1", email="creator@example.com", reminders=True) -> UserProfile:
    return UserProfile(
        id=user_id,
        email=email,
        notification_settings=NotificationSettings(email=EmailNotificationSettings(deal_reminders=reminders)),
    )


@pytest.fixture
def clock():
    return lambda: TODAY


class InMemoryRuns:
    def __init__(self):
        self.claimed = set()

    async def claim_run(self, run_date) -> bool:
        if run_date in self.claimed:
            return False
        self.claimed.add(run_date)
        return True
