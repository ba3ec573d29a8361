"""
Daily deal reminder job.

Scans active deals, keeps the ones due in exactly 1 or 3 UTC calendar days,
groups them per opted-in user and queues one digest email per user.
"""

import asyncio
import html
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from core.ports import DealReader, MailWriter, UserReader
from models.deal import DealStatus, InvalidDueDate, parse_due_date, utc_today
from models.mail import OutboundEmail
from models.user import UserProfile

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (DealStatus.UPCOMING, DealStatus.IN_PROGRESS)
REMINDER_OFFSETS = (1, 3)
REMINDER_SUBJECT = "Upcoming Deal Deadlines on CollabFlow"


@dataclass(frozen=True)
class ReminderItem:
    campaign_name: str
    days_until_due: int


@dataclass
class ReminderDigest:
    user_id: str
    email: str
    items: List[ReminderItem] = field(default_factory=list)


@dataclass
class ReminderRunReport:
    deals_scanned: int = 0
    invalid_due_dates: int = 0
    due_soon: int = 0
    emails_queued: int = 0
    failed_writes: int = 0


def render_reminder_html(items: List[ReminderItem]) -> str:
    deals_list_html = "".join(
        f"<li><b>{html.escape(item.campaign_name)}</b> is due in {item.days_until_due} day(s).</li>"
        for item in items
    )
    return (
        "<p>Hi there,</p>"
        "<p>This is a friendly reminder from CollabFlow about your upcoming deadlines:</p>"
        f"<ul>{deals_list_html}</ul>"
        "<p>Log in to your dashboard to view more details.</p>"
        "<p>Best,<br/>The CollabFlow Team</p>"
    )


def build_reminder_email(digest: ReminderDigest) -> OutboundEmail:
    return OutboundEmail(
        to=[digest.email],
        subject=REMINDER_SUBJECT,
        html=render_reminder_html(digest.items),
    )


class DealReminderJob:
    def __init__(
        self,
        deals: DealReader,
        users: UserReader,
        mail: MailWriter,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.deals = deals
        self.users = users
        self.mail = mail
        self.clock = clock

    async def collect_digests(self, report: ReminderRunReport) -> Dict[str, ReminderDigest]:
        """
        Groups due-soon deals per user, in the order the deals were scanned.

        Users that don't exist, have reminders disabled or have no email
        are skipped. A user is looked up at most once per run.
        """
        today = utc_today(self.clock())
        digests: Dict[str, ReminderDigest] = {}
        user_cache: Dict[str, Optional[UserProfile]] = {}

        deals = await self.deals.list_deals_by_status(ACTIVE_STATUSES)
        report.deals_scanned = len(deals)

        for deal in deals:
            due = parse_due_date(deal.due_date)
            if isinstance(due, InvalidDueDate):
                report.invalid_due_dates += 1
                logger.warning(f"⚠️ Deal {deal.id} has invalid or missing dueDate ({due.reason}): {due.raw!r}")
                continue

            offset = (due - today).days
            if offset not in REMINDER_OFFSETS:
                continue

            if deal.user_id not in user_cache:
                try:
                    user_cache[deal.user_id] = await self.users.get_user(deal.user_id)
                except Exception as e:
                    logger.error(f"❌ Failed to load user {deal.user_id} for deal {deal.id}: {e}")
                    continue

            user = user_cache[deal.user_id]
            if user is None:
                logger.debug(f"User {deal.user_id} not found for deal {deal.id}.")
                continue
            if not user.wants_deal_reminders:
                logger.debug(f"User {deal.user_id} has reminders disabled for deal {deal.id}.")
                continue
            if not user.email:
                logger.warning(f"⚠️ User {deal.user_id} for deal {deal.id} is missing an email address.")
                continue

            digest = digests.get(deal.user_id)
            if digest is None:
                digest = digests[deal.user_id] = ReminderDigest(user_id=deal.user_id, email=user.email)
            digest.items.append(ReminderItem(deal.campaign_name, offset))
            report.due_soon += 1

        return digests

    async def _queue(self, digest: ReminderDigest) -> str:
        logger.info(f"📧 Creating email document for: {digest.email}")
        return await self.mail.add_mail(build_reminder_email(digest))

    async def run(self) -> ReminderRunReport:
        logger.info("⏰ Running daily deal reminder check...")
        report = ReminderRunReport()

        digests = await self.collect_digests(report)
        if not digests:
            logger.info("No reminders to send today based on due dates and user preferences.")
            return report

        pending = list(digests.values())
        results = await asyncio.gather(*(self._queue(d) for d in pending), return_exceptions=True)

        for digest, result in zip(pending, results):
            if isinstance(result, BaseException):
                report.failed_writes += 1
                logger.error(f"❌ Failed to queue reminder for user {digest.user_id}: {result}")
            else:
                report.emails_queued += 1

        logger.info(
            f"✅ Reminder run done: {report.emails_queued} emails queued, "
            f"{report.failed_writes} failed, {report.due_soon} deals due soon."
        )
        return report
